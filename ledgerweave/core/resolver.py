"""
Recursive reference resolution.

Content read from the ledger may embed references to other records. The
resolver fetches each referenced record, resolves its own references in turn
and splices the result into the parent, producing one inlined document.

Termination is guaranteed by two mechanisms:
- a depth ceiling (``max_depth``) on how deep the reference chain may go
- the set of records on the current path, so a record is never entered
  again below itself (cycles)

Each record is fetched at most once per call. A record reached again is
resolved afresh from its fetched text at the new depth, so shared records
(diamonds) cost one fetch and still respect the depth ceiling.

A reference that is not followed is left in the content exactly as written
and reported in ``ResolvedContent.unresolved`` with the reason.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple, Union
import logging

from .errors import LedgerReadError, ResolutionError
from .keys import FixedKey, KeyFormat
from .references import Reference, contains_references, parse_references
from .selector import StorageAccessSelector

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3

Node = Tuple[str, str, Optional[int]]  # (fixed key hex, operator, version index)


class UnresolvedReason(Enum):
    """Why a reference was left in place."""
    CYCLE_DETECTED = "cycle_detected"
    DEPTH_EXCEEDED = "depth_exceeded"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True)
class UnresolvedReference:
    """A reference the resolver did not inline."""
    reference: Reference
    operator: str
    depth: int
    reason: UnresolvedReason
    detail: str = ""


@dataclass
class ResolvedContent:
    """Result of a resolve call."""
    content: str
    unresolved: List[UnresolvedReference] = field(default_factory=list)
    fetches: int = 0

    @property
    def complete(self) -> bool:
        """True when every reference was inlined."""
        return not self.unresolved

    def reasons(self, reason: UnresolvedReason) -> List[UnresolvedReference]:
        return [entry for entry in self.unresolved if entry.reason is reason]

    def __str__(self) -> str:
        return self.content


@dataclass
class ResolutionContext:
    """
    State owned by one top-level resolve call.

    ``active`` holds the nodes on the path from the root to the current
    position. ``fetched`` maps every node read so far to its raw text, and
    ``failed`` maps nodes whose read failed to the error message.
    """
    max_depth: int
    active: Set[Node] = field(default_factory=set)
    fetched: Dict[Node, str] = field(default_factory=dict)
    failed: Dict[Node, str] = field(default_factory=dict)
    unresolved: List[UnresolvedReference] = field(default_factory=list)
    fetches: int = 0


class RecursiveResolver:
    """
    Inlines embedded references, depth-bounded and cycle-safe.

    References are resolved one at a time in document order. By default any
    fetch failure aborts the whole call with a ResolutionError naming the
    reference; with ``best_effort=True`` the reference is left in place and
    reported as FETCH_FAILED instead.
    """

    def __init__(
        self,
        selector: StorageAccessSelector,
        max_depth: int = DEFAULT_MAX_DEPTH,
        best_effort: bool = False,
    ):
        """
        Initialize resolver.

        Args:
            selector: Read path used to fetch referenced records
            max_depth: Default depth ceiling
            best_effort: Keep going when a reference cannot be fetched
        """
        if max_depth < 0:
            raise ValueError(f"Invalid max_depth: {max_depth}")

        self.selector = selector
        self.max_depth = max_depth
        self.best_effort = best_effort

    async def resolve(
        self,
        root_content: str,
        root_operator: str,
        max_depth: Optional[int] = None,
        root_key: Optional[Union[str, FixedKey]] = None,
        root_key_format: Union[KeyFormat, str] = KeyFormat.AUTO,
        root_version_index: Optional[int] = None,
    ) -> ResolvedContent:
        """
        Resolve every reachable reference in ``root_content``.

        Args:
            root_content: Content to resolve
            root_operator: Operator for references that do not name one
            max_depth: Depth ceiling for this call (defaults to the resolver's)
            root_key: Key the content was read from; marks the root as
                the start of the path so self references are reported as cycles
            root_version_index: Version the root content was read at

        Returns:
            ResolvedContent
        """
        depth = self.max_depth if max_depth is None else max_depth
        if depth < 0:
            raise ValueError(f"Invalid max_depth: {depth}")

        operator = root_operator.lower()
        context = ResolutionContext(max_depth=depth)

        if root_key is not None:
            root = self.selector.codec.encode(root_key, root_key_format).hex
            context.active.add((root, operator, root_version_index))

        content = await self._resolve_content(root_content, operator, depth, context)

        if context.unresolved:
            logger.info(
                f"Resolved with {len(context.unresolved)} reference(s) left in place "
                f"after {context.fetches} fetch(es)"
            )

        return ResolvedContent(
            content=content,
            unresolved=context.unresolved,
            fetches=context.fetches,
        )

    async def _resolve_content(
        self,
        content: str,
        operator: str,
        remaining: int,
        context: ResolutionContext,
    ) -> str:
        if not contains_references(content):
            return content

        references = parse_references(content)
        if not references:
            return content

        # Spans refer to the original content, so rebuild left to right
        pieces: List[str] = []
        cursor = 0
        for reference in references:
            pieces.append(content[cursor:reference.start])
            pieces.append(
                await self._resolve_reference(reference, operator, remaining, context)
            )
            cursor = reference.end
        pieces.append(content[cursor:])

        return "".join(pieces)

    def _leave(
        self,
        context: ResolutionContext,
        reference: Reference,
        operator: str,
        depth: int,
        reason: UnresolvedReason,
        detail: str = "",
    ) -> str:
        context.unresolved.append(
            UnresolvedReference(reference, operator, depth, reason, detail)
        )
        return reference.raw

    async def _resolve_reference(
        self,
        reference: Reference,
        inherited_operator: str,
        remaining: int,
        context: ResolutionContext,
    ) -> str:
        operator = reference.effective_operator(inherited_operator)
        depth = context.max_depth - remaining + 1

        try:
            fixed = self.selector.codec.encode(reference.key).hex
        except LedgerReadError as e:
            return self._fail(context, reference, operator, depth, e)
        node = (fixed, operator, reference.version_index)

        if node in context.failed:
            return self._leave(
                context, reference, operator, depth,
                UnresolvedReason.FETCH_FAILED, context.failed[node],
            )

        if node in context.active:
            logger.warning(
                f"Circular reference detected: {reference.syntax} tag "
                f"{reference.key} ({operator})"
            )
            return self._leave(
                context, reference, operator, depth, UnresolvedReason.CYCLE_DETECTED
            )

        if remaining <= 0:
            logger.debug(
                f"Depth limit reached at {reference.syntax} tag {reference.key} ({operator})"
            )
            return self._leave(
                context, reference, operator, depth, UnresolvedReason.DEPTH_EXCEEDED
            )

        text = context.fetched.get(node)
        if text is None:
            try:
                result = await self.selector.read(
                    node[0],
                    operator,
                    version_index=reference.version_index,
                    prefer_router=not reference.direct,
                    key_format=KeyFormat.FIXED_WIDTH,
                )
            except LedgerReadError as e:
                context.failed[node] = str(e)
                return self._fail(context, reference, operator, depth, e)

            context.fetches += 1
            text = context.fetched[node] = result.text

        # Shared records are re-resolved at this depth; only the fetch is reused
        context.active.add(node)
        try:
            return await self._resolve_content(text, operator, remaining - 1, context)
        finally:
            context.active.discard(node)

    def _fail(
        self,
        context: ResolutionContext,
        reference: Reference,
        operator: str,
        depth: int,
        error: LedgerReadError,
    ) -> str:
        if not self.best_effort:
            raise ResolutionError(reference.key, operator, depth, str(error)) from error

        logger.warning(
            f"Leaving reference {reference.key} ({operator}) unresolved at depth {depth}: {error}"
        )
        return self._leave(
            context, reference, operator, depth, UnresolvedReason.FETCH_FAILED, str(error)
        )
