# midi/vlq.py
from typing import Tuple

from midi.errors import MalformedStream

MAX_VLQ_VALUE = 0x0FFFFFFF  # largest value SMF allows in 4 bytes

def read_vlq(buf: bytes, pos: int, max_bytes: int = 4) -> Tuple[int, int]:
    """Decode a variable-length quantity at `pos`.

    Returns (value, bytes consumed). Raises MalformedStream when the buffer
    ends mid-value or no terminating byte shows up within `max_bytes`.
    """
    value = 0
    for n in range(max_bytes):
        if pos + n >= len(buf):
            raise MalformedStream("variable-length quantity runs past end of buffer", offset=pos)
        b = buf[pos + n]
        value = (value << 7) | (b & 0x7F)
        if not b & 0x80:
            return value, n + 1
    raise MalformedStream(f"variable-length quantity longer than {max_bytes} bytes", offset=pos)

def encode_vlq(value: int) -> bytes:
    if not 0 <= value <= MAX_VLQ_VALUE:
        raise ValueError(f"VLQ value out of range: {value}")
    out = [value & 0x7F]
    value >>= 7
    while value:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(out))
