# midi/decoder.py
import logging
from typing import List

from midi.errors import InvalidTempo, MalformedStream, MidiLoadError
from midi.tempo import bpm_from_tempo, tick_duration_ms
from midi.vlq import read_vlq
from notes.model import NoteEvent, NoteKind, TempoEvent

NOTE_OFF = 0x80
NOTE_ON = 0x90
POLY_PRESSURE = 0xA0
CONTROL_CHANGE = 0xB0
PROGRAM_CHANGE = 0xC0
CHANNEL_PRESSURE = 0xD0
PITCH_BEND = 0xE0
SYSEX = 0xF0
SYSEX_ESCAPE = 0xF7
META = 0xFF

META_SET_TEMPO = 0x51
META_END_OF_TRACK = 0x2F
KNOWN_META_TYPES = frozenset(range(0x00, 0x08)) | {
    0x20, 0x21, META_END_OF_TRACK, META_SET_TEMPO, 0x54, 0x58, 0x59, 0x7F,
}

CHANNEL_MODE_FIRST = 0x78   # controller numbers >= this are channel mode messages
LONG_NOTE_VELOCITY = 127
LANES = 128

# data bytes that are read and thrown away, per channel message type
SKIPPED_DATA_BYTES = {
    POLY_PRESSURE: 2,
    PROGRAM_CHANGE: 1,
    CHANNEL_PRESSURE: 1,
    PITCH_BEND: 2,
}

class TrackDecoder:
    """Decodes one track chunk into raw (tick-time) note and tempo events.

    Running status and the long-note flags belong to this instance only,
    so every track starts from a clean state.
    """

    def __init__(self, data: bytes, division: int, track: int = 0, max_vlq_bytes: int = 4):
        self.data = data
        self.division = division
        self.track = track
        self.max_vlq_bytes = max_vlq_bytes
        self.pos = 0
        self.tick = 0
        self.running_status = 0
        self.long_flags = [False] * LANES
        self.notes: List[NoteEvent] = []
        self.tempos: List[TempoEvent] = []

    def decode(self) -> "TrackDecoder":
        try:
            while self.pos < len(self.data):
                self._event()
        except MidiLoadError as e:
            e.track = self.track
            if e.offset is None:
                e.offset = self.pos
            e.partial = (list(self.notes), list(self.tempos))
            raise
        logging.debug("Track %d decoded: %d notes, %d tempo events, %d ticks",
                      self.track, len(self.notes), len(self.tempos), self.tick)
        return self

    # ---------- byte access ----------
    def _byte(self) -> int:
        if self.pos >= len(self.data):
            raise MalformedStream("unexpected end of track data", offset=self.pos)
        b = self.data[self.pos]
        self.pos += 1
        return b

    def _data_byte(self) -> int:
        b = self._byte()
        if b & 0x80:
            raise MalformedStream(f"expected a data byte, got 0x{b:02x}", offset=self.pos - 1)
        return b

    def _skip(self, n: int):
        if self.pos + n > len(self.data):
            raise MalformedStream(f"cannot skip {n} bytes past end of track data", offset=self.pos)
        self.pos += n

    def _vlq(self) -> int:
        value, read = read_vlq(self.data, self.pos, self.max_vlq_bytes)
        self.pos += read
        return value

    # ---------- events ----------
    def _event(self):
        self.tick += self._vlq()

        if self.pos >= len(self.data):
            raise MalformedStream("delta-time not followed by an event", offset=self.pos)
        if self.data[self.pos] & 0x80:
            status = self._byte()
            # meta and sysex events leave the running status of channel messages alone
            if status < SYSEX:
                self.running_status = status
        elif self.running_status:
            status = self.running_status
        else:
            raise MalformedStream(f"data byte 0x{self.data[self.pos]:02x} without a running status",
                                  offset=self.pos)

        if status < SYSEX:
            self._channel_event(status & 0xF0)
        elif status in (SYSEX, SYSEX_ESCAPE):
            self._skip(self._vlq())
        elif status == META:
            self._meta_event()
        else:
            raise MalformedStream(f"unrecognized status byte 0x{status:02x}", offset=self.pos - 1)

    def _channel_event(self, kind: int):
        if kind == NOTE_OFF:
            key, _vel = self._data_byte(), self._data_byte()
            if self.long_flags[key]:
                self.long_flags[key] = False
                self._emit_note(key, NoteKind.LONG_END)
            # note-off without a long start carries no chart information

        elif kind == NOTE_ON:
            key, vel = self._data_byte(), self._data_byte()
            note_kind = NoteKind.NORMAL
            if vel == LONG_NOTE_VELOCITY:
                note_kind = NoteKind.LONG_START
                self.long_flags[key] = True
            elif vel == 0 and self.long_flags[key]:
                note_kind = NoteKind.LONG_END
                self.long_flags[key] = False
            self._emit_note(key, note_kind)

        elif kind == CONTROL_CHANGE:
            controller, _value = self._data_byte(), self._data_byte()
            # controller >= CHANNEL_MODE_FIRST is a channel mode message (all notes off, omni, ...)

        else:
            for _ in range(SKIPPED_DATA_BYTES[kind]):
                self._data_byte()

    def _meta_event(self):
        meta_type = self._byte()
        length = self._vlq()

        if meta_type == META_SET_TEMPO:
            start = self.pos
            if length != 3:
                raise InvalidTempo(f"Set Tempo must carry 3 bytes, got {length}", offset=start)
            self._skip(3)
            us_per_quarter = int.from_bytes(self.data[start:start + 3], "big")
            if us_per_quarter == 0:
                raise InvalidTempo("Set Tempo of 0 microseconds per quarter note", offset=start)
            bpm = bpm_from_tempo(us_per_quarter)
            self.tempos.append(TempoEvent(time=self.tick, bpm=bpm,
                                          tick_duration_ms=tick_duration_ms(bpm, self.division),
                                          track=self.track))
            return

        if meta_type not in KNOWN_META_TYPES:
            logging.debug("Track %d: skipping unknown meta event 0x%02x (%d bytes) at 0x%x",
                          self.track, meta_type, length, self.pos)
        self._skip(length)
        # end of track does not stop decoding; the chunk length bounds the loop

    def _emit_note(self, key: int, kind: NoteKind):
        self.notes.append(NoteEvent(time=self.tick, lane=key, kind=kind, track=self.track))

def decode_track(data: bytes, division: int, track: int = 0, max_vlq_bytes: int = 4) -> TrackDecoder:
    """Decode one track payload. Raises a MidiLoadError carrying partial results on failure."""
    return TrackDecoder(data, division, track, max_vlq_bytes).decode()
