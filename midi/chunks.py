# midi/chunks.py
from dataclasses import dataclass
from typing import BinaryIO

from midi.errors import InvalidChunk, InvalidHeader

HEADER_MAGIC = b"MThd"
TRACK_MAGIC = b"MTrk"
HEADER_MIN_LENGTH = 6

@dataclass(frozen=True)
class HeaderInfo:
    format: int
    track_count: int
    division: int   # ticks per quarter note

    @property
    def is_smpte(self) -> bool:
        return bool(self.division & 0x8000)

def _read_exact(source: BinaryIO, n: int) -> bytes:
    data = source.read(n)
    return data if data is not None else b""

def read_header_chunk(source: BinaryIO) -> HeaderInfo:
    """Read the `MThd` chunk. All multi-byte fields are big-endian on the wire."""
    magic = _read_exact(source, 4)
    if magic != HEADER_MAGIC:
        raise InvalidHeader(f"bad header chunk magic: expected {HEADER_MAGIC!r}, got {magic!r}", offset=0)

    raw_len = _read_exact(source, 4)
    if len(raw_len) < 4:
        raise InvalidHeader("header chunk truncated before length", offset=4)
    length = int.from_bytes(raw_len, "big")
    if length < HEADER_MIN_LENGTH:
        raise InvalidHeader(f"header chunk length must be >= {HEADER_MIN_LENGTH}, got {length}", offset=4)

    body = _read_exact(source, length)
    if len(body) < length:
        raise InvalidHeader(f"header chunk truncated: expected {length} bytes, got {len(body)}", offset=8)

    return HeaderInfo(
        format=int.from_bytes(body[0:2], "big"),
        track_count=int.from_bytes(body[2:4], "big"),
        division=int.from_bytes(body[4:6], "big"),
    )

def read_track_chunk(source: BinaryIO, track: int = 0) -> bytes:
    """Read one `MTrk` chunk and return its payload."""
    magic = _read_exact(source, 4)
    if magic != TRACK_MAGIC:
        raise InvalidChunk(f"bad track chunk magic: expected {TRACK_MAGIC!r}, got {magic!r}", track=track)

    raw_len = _read_exact(source, 4)
    if len(raw_len) < 4:
        raise InvalidChunk("track chunk truncated before length", track=track)
    length = int.from_bytes(raw_len, "big")

    payload = _read_exact(source, length)
    if len(payload) < length:
        raise InvalidChunk(f"track chunk truncated: expected {length} bytes, got {len(payload)}",
                           track=track, offset=len(payload))
    return payload
