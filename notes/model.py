# notes/model.py
import enum
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from midi.chunks import HeaderInfo


class NoteKind(enum.Enum):
    NORMAL = "normal"
    LONG_START = "long_start"
    LONG_END = "long_end"


@dataclass(frozen=True)
class NoteEvent:
    time: float     # ticks while decoding, ms after correction
    lane: int       # MIDI key 0-127
    kind: NoteKind = NoteKind.NORMAL
    track: int = field(default=0, compare=False)


@dataclass(frozen=True)
class TempoEvent:
    time: float     # ticks while decoding, ms after correction
    bpm: float
    tick_duration_ms: float  # ms per tick at this tempo
    track: int = field(default=0, compare=False)


@dataclass(frozen=True)
class TrackFailure:
    track: int
    offset: Optional[int]
    error: str


@dataclass(frozen=True)
class Chart:
    """Read-only result of one load + correct cycle. Times are milliseconds."""
    header: HeaderInfo
    notes: Tuple[NoteEvent, ...] = ()
    tempos: Tuple[TempoEvent, ...] = ()
    failures: Tuple[TrackFailure, ...] = ()

    @property
    def duration_ms(self) -> float:
        return max((n.time for n in self.notes), default=0.0)

    def lanes(self) -> List[int]:
        return sorted({n.lane for n in self.notes})

    def count_by_kind(self) -> Dict[NoteKind, int]:
        counts = {k: 0 for k in NoteKind}
        for n in self.notes:
            counts[n.kind] += 1
        return counts

    def bpm_at(self, ms: float, default: float = 120.0) -> float:
        """BPM in effect at `ms`; `default` before the first tempo change."""
        starts = [t.time for t in self.tempos]
        if all(a <= b for a, b in zip(starts, starts[1:])):
            idx = bisect_right(starts, ms) - 1
            return self.tempos[idx].bpm if idx >= 0 else default
        # tempos merged from several tracks need not be in ms order
        for t in reversed(self.tempos):
            if t.time <= ms:
                return t.bpm
        return default

    def long_note_pairs(self) -> List[Tuple[NoteEvent, NoteEvent]]:
        """(start, end) pairs per lane and track, in parse order. Unclosed starts are left out."""
        open_starts: Dict[Tuple[int, int], NoteEvent] = {}
        pairs: List[Tuple[NoteEvent, NoteEvent]] = []
        for n in self.notes:
            key = (n.track, n.lane)
            if n.kind is NoteKind.LONG_START:
                open_starts[key] = n
            elif n.kind is NoteKind.LONG_END and key in open_starts:
                pairs.append((open_starts.pop(key), n))
        return pairs
