# midi/tempo.py
"""Tempo math and the tick -> millisecond correction pass.

Event times come out of the decoder in ticks. A tick lasts
`60 / bpm / division * 1000` ms, and that changes at every tempo event, so
times are converted piecewise: each tempo event opens a segment that runs
until the next one.
"""
import logging
import math
from bisect import bisect_right
from dataclasses import replace
from typing import List, Optional, Sequence

import mido

from midi.errors import InvalidTempo
from notes.model import NoteEvent, TempoEvent

def bpm_from_tempo(us_per_quarter: int) -> float:
    """BPM for a Set Tempo value, truncated to one decimal place."""
    if us_per_quarter <= 0:
        raise InvalidTempo(f"tempo must be > 0 microseconds per quarter note, got {us_per_quarter}")
    return math.floor(mido.tempo2bpm(us_per_quarter) * 10) / 10

def tick_duration_ms(bpm: float, division: int) -> float:
    if bpm <= 0:
        raise InvalidTempo(f"bpm must be > 0, got {bpm}")
    return 60 / bpm / division * 1000

def default_tempo(division: int, bpm: float = 120.0) -> TempoEvent:
    """Implicit tempo segment starting at tick 0 / 0 ms."""
    bpm = bpm_from_tempo(mido.bpm2tempo(bpm))
    return TempoEvent(time=0, bpm=bpm, tick_duration_ms=tick_duration_ms(bpm, division))

def correct_tempo_times(raw: Sequence[TempoEvent]) -> List[TempoEvent]:
    """Pass 1: tempo event tick times -> ms.

    The first event keeps its raw time. Every later event is placed after the
    previous one using the previous segment's tick duration.
    """
    corrected: List[TempoEvent] = []
    for j, ev in enumerate(raw):
        if j == 0:
            corrected.append(ev)
            continue
        prev_raw, prev = raw[j - 1], corrected[j - 1]
        ms = prev.time + (ev.time - prev_raw.time) * prev_raw.tick_duration_ms
        corrected.append(replace(ev, time=ms))
    return corrected

class TempoMap:
    """Raw (tick) and corrected (ms) tempo events side by side.

    Lookups always search the raw ticks and read the corrected ms, so the
    inputs are never modified.
    """

    def __init__(self, raw: Sequence[TempoEvent], fallback: TempoEvent):
        self.raw = tuple(raw)
        self.corrected = tuple(correct_tempo_times(self.raw))
        self.fallback = fallback
        self._ticks = [t.time for t in self.raw]
        self._sorted = all(a <= b for a, b in zip(self._ticks, self._ticks[1:]))
        if not self._sorted:
            logging.warning("Tempo events are not in tick order; falling back to linear lookup")

    def segment_index(self, tick: float) -> Optional[int]:
        """Index of the last tempo event (in list order) whose raw tick is <= `tick`."""
        if self._sorted:
            idx = bisect_right(self._ticks, tick) - 1
            return idx if idx >= 0 else None
        for j in range(len(self._ticks) - 1, -1, -1):
            if self._ticks[j] <= tick:
                return j
        return None

    def tick_to_ms(self, tick: float) -> float:
        j = self.segment_index(tick)
        if j is None:
            return (tick - self.fallback.time) * self.fallback.tick_duration_ms
        return (tick - self.raw[j].time) * self.raw[j].tick_duration_ms + self.corrected[j].time

    def bpm_at_tick(self, tick: float) -> float:
        j = self.segment_index(tick)
        return self.fallback.bpm if j is None else self.raw[j].bpm

def correct_note_times(notes: Sequence[NoteEvent], tempo_map: TempoMap) -> List[NoteEvent]:
    """Pass 2: note tick times -> ms. Order and count are preserved."""
    return [replace(n, time=tempo_map.tick_to_ms(n.time)) for n in notes]

def correct_times(notes: Sequence[NoteEvent], tempos: Sequence[TempoEvent], division: int,
                  default_bpm: float = 120.0):
    """Run both passes. Returns (corrected notes, corrected tempos)."""
    tempo_map = TempoMap(tempos, default_tempo(division, default_bpm))
    if notes and (not tempos or tempo_map.segment_index(min(n.time for n in notes)) is None):
        logging.info("Notes before the first tempo event use the default tempo (%.1f BPM)",
                     tempo_map.fallback.bpm)
    return correct_note_times(notes, tempo_map), list(tempo_map.corrected)
