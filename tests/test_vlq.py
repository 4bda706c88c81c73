import pytest

import midi.errors
import midi.vlq


@pytest.mark.parametrize("value", [0, 0x40, 0x7F, 0x80, 0x2000, 0x3FFF, 0x4000, 0x1FFFFF, 0x200000, 0x0FFFFFFF])
def test_round_trip (value: int) -> None:

    """Encoding then decoding returns the value and consumes every byte."""

    encoded = midi.vlq.encode_vlq(value)
    decoded, read = midi.vlq.read_vlq(encoded, 0)

    assert decoded == value
    assert read == len(encoded)


def test_known_encodings () -> None:

    """Values from the SMF reference table encode as documented."""

    assert midi.vlq.encode_vlq(0x00) == b"\x00"
    assert midi.vlq.encode_vlq(0x80) == b"\x81\x00"
    assert midi.vlq.encode_vlq(0x3FFF) == b"\xff\x7f"
    assert midi.vlq.encode_vlq(0x0FFFFFFF) == b"\xff\xff\xff\x7f"


def test_read_from_offset () -> None:

    """Decoding starts at the given position and stops at the terminator."""

    value, read = midi.vlq.read_vlq(b"\x90\x3c\x81\x40\x55", 2)

    assert (value, read) == (0xC0, 2)


def test_unterminated_value_is_malformed () -> None:

    """High bit set on every byte within the limit fails."""

    with pytest.raises(midi.errors.MalformedStream):
        midi.vlq.read_vlq(b"\x81\x81\x81\x81\x01", 0)


def test_running_off_the_end_is_malformed () -> None:

    """A value cut off by the end of the buffer fails."""

    with pytest.raises(midi.errors.MalformedStream) as info:
        midi.vlq.read_vlq(b"\x00\x81", 1)

    assert info.value.offset == 1


def test_encode_rejects_out_of_range () -> None:

    with pytest.raises(ValueError):
        midi.vlq.encode_vlq(0x10000000)

    with pytest.raises(ValueError):
        midi.vlq.encode_vlq(-1)
