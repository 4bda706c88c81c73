# midi/errors.py
from typing import List, Optional, Tuple


class MidiLoadError(ValueError):
    """Base for every failure raised while loading a MIDI chart.

    `track` is the track chunk index (None for header-level errors) and
    `offset` the byte offset inside that track's payload, or inside the
    source stream for chunk-level errors.
    """

    def __init__(self, message: str, track: Optional[int] = None, offset: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.track = track
        self.offset = offset
        self.partial: Tuple[List, List] = ([], [])  # (notes, tempos) decoded before the failure

    def __str__(self):
        where = []
        if self.track is not None:
            where.append(f"track {self.track}")
        if self.offset is not None:
            where.append(f"offset 0x{self.offset:x}")
        return f"{self.message} ({', '.join(where)})" if where else self.message


class InvalidHeader(MidiLoadError):
    pass


class InvalidChunk(MidiLoadError):
    pass


class MalformedStream(MidiLoadError):
    pass


class InvalidTempo(MidiLoadError):
    pass
