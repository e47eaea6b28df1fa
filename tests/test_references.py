"""
Tests for embedded reference parsing.
"""

import pytest

from ledgerweave.core.references import (
    Reference,
    contains_references,
    format_reference,
    parse_references,
)


@pytest.mark.unit
class TestContainsReferences:
    """Marker detection."""

    def test_plain_text(self):
        assert not contains_references("regular text without tags")

    def test_empty(self):
        assert not contains_references("")

    def test_net_tag(self):
        assert contains_references('<net k="0x1234" v="0.0.1" />')

    def test_ref_tag(self):
        assert contains_references("see {{ref:key=B,op=0xAA}}")

    def test_plain_content_parses_to_nothing(self):
        assert parse_references("no tags here") == []


@pytest.mark.unit
class TestRefSyntax:
    """The {{ref:...}} form."""

    def test_key_and_operator(self):
        content = "see {{ref:key=B,op=0xAA}}"
        refs = parse_references(content)

        assert len(refs) == 1
        assert refs[0].key == "B"
        assert refs[0].operator == "0xaa"
        assert refs[0].syntax == "ref"
        assert content[refs[0].start:refs[0].end] == refs[0].raw == "{{ref:key=B,op=0xAA}}"

    def test_optional_attributes(self):
        ref = parse_references("{{ref:key=doc, op=0xbb, index=3, source=d}}")[0]

        assert ref.version_index == 3
        assert ref.direct
        assert ref.operator == "0xbb"

    def test_operator_absent(self):
        assert parse_references("{{ref:key=doc}}")[0].operator is None

    def test_missing_key_is_plain(self):
        content = "{{ref:op=0xaa}}"

        assert contains_references(content)
        assert parse_references(content) == []

    def test_unknown_attribute_is_plain(self):
        assert parse_references("{{ref:key=a,colour=red}}") == []

    def test_bad_index_is_plain(self):
        assert parse_references("{{ref:key=a,index=two}}") == []
        assert parse_references("{{ref:key=a,index=-1}}") == []


@pytest.mark.unit
class TestNetSyntax:
    """The <net .../> form."""

    def test_single(self):
        ref = parse_references('<net k="0x1234" v="0.0.1" />')[0]

        assert ref.key == "0x1234"
        assert ref.version_index is None
        assert ref.operator is None
        assert not ref.direct

    def test_all_attributes(self):
        ref = parse_references('<net k="0x1234" v="0.0.1" i="3" o="0xABCD" s="d" />')[0]

        assert ref.version_index == 3
        assert ref.operator == "0xabcd"
        assert ref.direct

    def test_malformed_tag_is_plain(self):
        content = "<net>invalid</net>"

        assert contains_references(content)
        assert parse_references(content) == []

    def test_non_numeric_index_skipped(self):
        assert parse_references('<net k="0x1" v="0.0.1" i="x" />') == []


@pytest.mark.unit
class TestOrdering:
    """Document order and spans."""

    def test_mixed_syntax_in_document_order(self):
        content = (
            'first {{ref:key=one}} then <net k="two" v="0.0.1" /> '
            "and {{ref:key=three,op=0xcc}}"
        )
        refs = parse_references(content)

        assert [ref.key for ref in refs] == ["one", "two", "three"]
        for ref in refs:
            assert content[ref.start:ref.end] == ref.raw

    def test_repeated_reference_reported_twice(self):
        refs = parse_references("{{ref:key=a}}{{ref:key=a}}")

        assert len(refs) == 2
        assert refs[0].span == (0, 13)
        assert refs[1].span == (13, 26)

    def test_tag_nested_in_attribute_belongs_to_outer_tag(self):
        content = '<net k="{{ref:key=x}}" v="1" /> tail'
        refs = parse_references(content)

        assert len(refs) == 1
        assert refs[0].syntax == "net"
        assert refs[0].key == "{{ref:key=x}}"
        assert refs[0].span == (0, len(content) - len(" tail"))

    def test_spans_never_overlap(self):
        content = 'a <net k="{{ref:key=x}}" v="1" /> b {{ref:key=y}} c'
        refs = parse_references(content)

        assert [ref.key for ref in refs] == ["{{ref:key=x}}", "y"]
        for previous, current in zip(refs, refs[1:]):
            assert previous.end <= current.start


@pytest.mark.unit
class TestFormatting:
    """Building tags."""

    def test_format_and_parse(self):
        tag = format_reference("0xabc", "0xABCD", version_index=2, direct=True)
        ref = parse_references(tag)[0]

        assert tag == '<net k="0xabc" v="0.0.1" i="2" o="0xabcd" s="d" />'
        assert (ref.key, ref.operator, ref.version_index, ref.direct) == ("0xabc", "0xabcd", 2, True)

    def test_minimal_tag(self):
        assert format_reference("0xabc", "0xdef") == '<net k="0xabc" v="0.0.1" o="0xdef" />'

    def test_effective_operator(self):
        inherited = Reference(key="a", operator=None, span=(0, 1), raw="x")
        explicit = Reference(key="a", operator="0xbb", span=(0, 1), raw="x")

        assert inherited.effective_operator("0xAA") == "0xaa"
        assert explicit.effective_operator("0xaa") == "0xbb"
