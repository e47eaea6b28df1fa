"""
Tests for chunk assembly.
"""

import zlib

import pytest

from ledgerweave.core.chunks import (
    EMPTY,
    ChunkAssembler,
    chunk_count_for,
    decode_fragment,
    split_fragments,
)
from ledgerweave.core.errors import MalformedFragment


@pytest.fixture
def assembler():
    """Provide an assembler without a transform."""
    return ChunkAssembler()


@pytest.mark.unit
class TestAssemble:
    """Fragment assembly."""

    def test_hello_world(self, assembler):
        fragments = ["0x68656c6c6f", "0x20", "0x776f726c64"]
        assert assembler.assemble(fragments) == b"hello world"

    def test_order_is_not_changed(self, assembler):
        assert assembler.assemble(["0x62", "0x61"]) == b"ba"

    def test_prefix_optional(self, assembler):
        assert assembler.assemble(["6869", "0x21"]) == b"hi!"

    def test_bytes_fragments(self, assembler):
        assert assembler.assemble([b"0x6869"]) == b"hi"

    def test_no_fragments_is_empty_marker(self, assembler):
        result = assembler.assemble([])

        assert result is EMPTY
        assert result != b""
        assert not result

    def test_zero_chunk_count_is_empty_marker(self, assembler):
        assert assembler.assemble(["0x6869"], chunk_count=0) is EMPTY

    def test_written_empty_content_is_not_marker(self, assembler):
        result = assembler.assemble(["0x"], chunk_count=1)

        assert result == b""
        assert result is not EMPTY

    def test_bad_hex_names_fragment(self, assembler):
        with pytest.raises(MalformedFragment) as exc_info:
            assembler.assemble(["0x68", "0x65", "0xzz"])

        assert exc_info.value.index == 2

    def test_odd_length_fragment(self, assembler):
        with pytest.raises(MalformedFragment) as exc_info:
            assembler.assemble(["0x123"])

        assert exc_info.value.index == 0

    def test_wrong_type_fragment(self, assembler):
        with pytest.raises(MalformedFragment) as exc_info:
            assembler.assemble(["0x68", 42])

        assert exc_info.value.index == 1

    def test_transform_applied_after_join(self):
        original = b"compressed payload " * 20
        packed = zlib.compress(original)
        fragments = split_fragments(packed, chunk_size=16)

        assembler = ChunkAssembler(transform=zlib.decompress)

        assert assembler.assemble(fragments) == original

    def test_transform_not_applied_to_empty_marker(self):
        assembler = ChunkAssembler(transform=zlib.decompress)
        assert assembler.assemble([]) is EMPTY


@pytest.mark.unit
class TestSplit:
    """The writer-side inverse used to seed ledgers."""

    @pytest.mark.parametrize("size", [1, 7, 8, 100])
    def test_split_then_assemble(self, assembler, size):
        data = bytes(range(256))[:size] * 3
        fragments = split_fragments(data, chunk_size=8)

        assert len(fragments) == chunk_count_for(data, 8)
        assert assembler.assemble(fragments) == data

    def test_empty_data_yields_one_fragment(self):
        assert split_fragments(b"") == ["0x"]
        assert chunk_count_for(b"") == 1

    def test_default_chunk_size(self):
        data = b"x" * 45_000
        assert len(split_fragments(data)) == 3

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            split_fragments(b"abc", chunk_size=0)

    def test_decode_fragment_empty(self):
        assert decode_fragment("0x") == b""
