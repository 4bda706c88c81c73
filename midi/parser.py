# midi/parser.py
import io
import logging
from typing import BinaryIO, List, Optional

from config import LoaderConfig
from midi.chunks import HeaderInfo, read_header_chunk, read_track_chunk
from midi.decoder import decode_track
from midi.errors import InvalidHeader, MidiLoadError
from midi.tempo import correct_times
from notes.model import Chart, NoteEvent, TempoEvent, TrackFailure

def _check_division(header: HeaderInfo):
    if header.is_smpte:
        raise InvalidHeader(f"SMPTE time division 0x{header.division:04x} is not supported", offset=12)
    if header.division == 0:
        raise InvalidHeader("division must be > 0 ticks per quarter note", offset=12)

def load_chart(source: BinaryIO, config: Optional[LoaderConfig] = None) -> Chart:
    """Read a whole SMF stream and return its notes and tempo changes in milliseconds.

    Tracks are decoded one after another and appended in chunk order; the
    tempo correction runs once over the merged result.
    """
    cfg = config or LoaderConfig()
    header = read_header_chunk(source)
    _check_division(header)
    logging.info("MIDI header: format=%d, tracks=%d, division=%d",
                 header.format, header.track_count, header.division)

    notes: List[NoteEvent] = []
    tempos: List[TempoEvent] = []
    failures: List[TrackFailure] = []

    for idx in range(header.track_count):
        payload = read_track_chunk(source, track=idx)
        try:
            result = decode_track(payload, header.division, track=idx, max_vlq_bytes=cfg.max_vlq_bytes)
        except MidiLoadError as e:
            if cfg.on_track_error != "skip":
                raise
            logging.warning("Skipping rest of track %d: %s", idx, e)
            part_notes, part_tempos = e.partial
            notes.extend(part_notes)
            tempos.extend(part_tempos)
            failures.append(TrackFailure(track=idx, offset=e.offset, error=str(e)))
            continue
        notes.extend(result.notes)
        tempos.extend(result.tempos)

    trailing = source.read(1)
    if trailing:
        logging.debug("Ignoring data after the last track chunk")

    notes, tempos = correct_times(notes, tempos, header.division, cfg.default_bpm)
    return Chart(header=header, notes=tuple(notes), tempos=tuple(tempos), failures=tuple(failures))

def load_chart_bytes(data: bytes, config: Optional[LoaderConfig] = None) -> Chart:
    return load_chart(io.BytesIO(data), config)

def parse_midi(path: str, config: Optional[LoaderConfig] = None) -> Chart:
    with open(path, "rb") as f:
        chart = load_chart(f, config)
    logging.info("Loaded %s: %d notes, %d tempo changes, %.0f ms",
                 path, len(chart.notes), len(chart.tempos), chart.duration_ms)
    return chart
