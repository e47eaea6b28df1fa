"""
Embedded reference parsing.

Stored content can point at other stored records. Two tag forms are
understood:

    <net k="KEY" v="0.0.1" i="2" o="0xoperator" s="d" />
    {{ref:key=KEY,op=0xoperator,index=2,source=d}}

Only ``k``/``key`` is required. ``i``/``index`` selects a historical version,
``o``/``op`` the writing operator, and ``s="d"``/``source=d`` a direct
(non-chunked) record.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

TAG_VERSION = "0.0.1"

NET_TAG_MARKER = "<net"
REF_TAG_MARKER = "{{ref:"

_NET_TAG_RE = re.compile(
    r'<net\s+k="([^"]+)"\s+v="([^"]+)"'
    r'(?:\s+i="([^"]+)")?'
    r'(?:\s+o="([^"]+)")?'
    r'(?:\s+s="([^"]+)")?'
    r'\s*/>'
)
_REF_TAG_RE = re.compile(r"\{\{ref:([^{}]*)\}\}")

_REF_ATTRS = {"key", "op", "index", "source"}


@dataclass(frozen=True)
class Reference:
    """A pointer to another stored record, found inside content."""
    key: str
    operator: Optional[str]
    span: Tuple[int, int]        # (start, end) in the parsed content
    raw: str                     # exact tag text
    version_index: Optional[int] = None
    direct: bool = False         # s="d": plain record rather than chunked
    syntax: str = "net"

    @property
    def start(self) -> int:
        return self.span[0]

    @property
    def end(self) -> int:
        return self.span[1]

    def effective_operator(self, inherited: str) -> str:
        """Operator to read with; tags without one inherit their parent's."""
        return (self.operator or inherited).lower()


def contains_references(content: str) -> bool:
    """Cheap check for a reference tag marker."""
    return NET_TAG_MARKER in content or REF_TAG_MARKER in content


def _parse_index(value: Optional[str]) -> Tuple[bool, Optional[int]]:
    if value is None:
        return True, None
    try:
        index = int(value, 10)
    except ValueError:
        return False, None
    return index >= 0, index


def _net_reference(match: "re.Match[str]") -> Optional[Reference]:
    key, _version, index_text, operator, source = match.groups()
    ok, index = _parse_index(index_text)
    if not ok:
        logger.debug(f"Ignoring tag with bad index: {match.group(0)}")
        return None
    return Reference(
        key=key,
        operator=operator.lower() if operator else None,
        span=match.span(),
        raw=match.group(0),
        version_index=index,
        direct=source == "d",
        syntax="net",
    )


def _ref_reference(match: "re.Match[str]") -> Optional[Reference]:
    attrs: Dict[str, str] = {}
    for part in match.group(1).split(","):
        name, sep, value = part.partition("=")
        name, value = name.strip(), value.strip()
        if not sep or name not in _REF_ATTRS or not value or name in attrs:
            logger.debug(f"Ignoring malformed reference: {match.group(0)}")
            return None
        attrs[name] = value

    if "key" not in attrs:
        return None

    ok, index = _parse_index(attrs.get("index"))
    if not ok:
        return None

    operator = attrs.get("op")
    return Reference(
        key=attrs["key"],
        operator=operator.lower() if operator else None,
        span=match.span(),
        raw=match.group(0),
        version_index=index,
        direct=attrs.get("source") == "d",
        syntax="ref",
    )


def parse_references(content: str) -> List[Reference]:
    """
    Extract references in document order.

    Malformed tags are skipped, so content with a marker but no valid tag
    parses to an empty list and is treated as plain content. Returned spans
    never overlap.
    """
    if not contains_references(content):
        return []

    references = []
    for match in _NET_TAG_RE.finditer(content):
        reference = _net_reference(match)
        if reference is not None:
            references.append(reference)
    for match in _REF_TAG_RE.finditer(content):
        reference = _ref_reference(match)
        if reference is not None:
            references.append(reference)

    # A tag nested inside another tag (e.g. in an attribute) belongs to the outer one
    references.sort(key=lambda ref: (ref.start, -ref.end))
    kept: List[Reference] = []
    for reference in references:
        if kept and reference.start < kept[-1].end:
            logger.debug(f"Ignoring tag inside another tag: {reference.raw}")
            continue
        kept.append(reference)
    return kept


def format_reference(
    key: str,
    operator: str,
    version_index: Optional[int] = None,
    direct: bool = False,
) -> str:
    """Build a <net .../> tag pointing at a stored record."""
    index_attr = f' i="{version_index}"' if version_index is not None else ""
    source_attr = ' s="d"' if direct else ""
    return (
        f'<net k="{key}" v="{TAG_VERSION}"{index_attr} '
        f'o="{operator.lower()}"{source_attr} />'
    )
