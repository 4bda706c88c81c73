import io

import pytest

import midi.chunks
import midi.errors

from conftest import header_bytes, track_bytes


@pytest.mark.parametrize("fmt,trk,div", [(0, 1, 480), (1, 4, 96), (2, 0xFFFF, 0x7FFF), (1, 16, 0xE250)])
def test_header_fields_are_returned_exactly (fmt: int, trk: int, div: int) -> None:

    """Big-endian header fields come back as plain integers."""

    header = midi.chunks.read_header_chunk(io.BytesIO(header_bytes(fmt, trk, div)))

    assert header == midi.chunks.HeaderInfo(format=fmt, track_count=trk, division=div)


def test_header_reads_big_endian () -> None:

    raw = bytes.fromhex("4d546864 00000006 0001 0002 01e0")
    header = midi.chunks.read_header_chunk(io.BytesIO(raw))

    assert (header.format, header.track_count, header.division) == (1, 2, 480)


def test_header_bad_magic () -> None:

    with pytest.raises(midi.errors.InvalidHeader):
        midi.chunks.read_header_chunk(io.BytesIO(b"MTrk" + header_bytes()[4:]))


def test_header_too_short () -> None:

    raw = b"MThd" + (4).to_bytes(4, "big") + b"\x00\x00\x00\x01"

    with pytest.raises(midi.errors.InvalidHeader):
        midi.chunks.read_header_chunk(io.BytesIO(raw))


def test_header_truncated () -> None:

    with pytest.raises(midi.errors.InvalidHeader):
        midi.chunks.read_header_chunk(io.BytesIO(header_bytes()[:10]))


def test_header_extra_bytes_are_skipped () -> None:

    """A longer header is accepted and the stream is left at the first track."""

    raw = b"MThd" + (8).to_bytes(4, "big") + bytes.fromhex("0000 0001 0060 abcd") + track_bytes(b"")
    source = io.BytesIO(raw)

    header = midi.chunks.read_header_chunk(source)

    assert header.division == 0x60
    assert midi.chunks.read_track_chunk(source) == b""


def test_smpte_division_flag () -> None:

    assert midi.chunks.HeaderInfo(0, 1, 0xE250).is_smpte
    assert not midi.chunks.HeaderInfo(0, 1, 480).is_smpte


def test_track_payload () -> None:

    payload = bytes([0x00, 0x90, 0x3C, 0x64, 0x00, 0xFF, 0x2F, 0x00])
    source = io.BytesIO(track_bytes(payload) + b"trailing")

    assert midi.chunks.read_track_chunk(source) == payload
    assert source.read() == b"trailing"


def test_track_bad_magic () -> None:

    with pytest.raises(midi.errors.InvalidChunk) as info:
        midi.chunks.read_track_chunk(io.BytesIO(b"XFIH" + (0).to_bytes(4, "big")), track=3)

    assert info.value.track == 3


def test_track_truncated () -> None:

    raw = b"MTrk" + (10).to_bytes(4, "big") + b"\x00\x90\x3c"

    with pytest.raises(midi.errors.InvalidChunk) as info:
        midi.chunks.read_track_chunk(io.BytesIO(raw))

    assert "truncated" in str(info.value)
