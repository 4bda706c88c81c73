# main.py
import sys, os
sys.path.append(os.path.dirname(__file__))  # make config.py importable when run as a script

import argparse
import json
import logging
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from config import AppConfig, LoaderConfig, LogConfig, TRACK_ERROR_POLICIES
from midi.errors import MidiLoadError
from midi.parser import parse_midi
from notes.model import Chart, NoteKind
from utils.crashlog import setup_crashlog, log_exception, log_dir

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

def _init_logging(cfg: LogConfig):
    root = logging.getLogger()
    if root.handlers:
        return

    logging.basicConfig(level=cfg.level, format=LOG_FORMAT, encoding="utf-8")
    if not cfg.log_file:
        return
    try:
        fh = RotatingFileHandler(os.path.join(log_dir(), "app.log"),
                                 maxBytes=2*1024*1024, backupCount=3, encoding="utf-8")
    except OSError as e:
        logging.warning("File logging disabled: %s", e)
        return
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fh)

def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Load a MIDI chart and print its notes and tempo map.")
    ap.add_argument('midi', help="path to a .mid file")
    ap.add_argument('--on-error', default='abort', choices=list(TRACK_ERROR_POLICIES),
                    help="what to do when a track fails to decode")
    ap.add_argument('--default-bpm', type=float, default=120.0,
                    help="tempo for notes before the first tempo event")
    ap.add_argument('--json', metavar='OUT', help="write the chart as JSON")
    ap.add_argument('--no-log-file', action='store_true')
    ap.add_argument('-v', '--verbose', action='store_true')
    return ap

def config_from_args(args) -> AppConfig:
    return AppConfig(
        loader=LoaderConfig(on_track_error=args.on_error, default_bpm=args.default_bpm),
        log=LogConfig(level="DEBUG" if args.verbose else "INFO", log_file=not args.no_log_file),
    )

def chart_to_dict(chart: Chart) -> dict:
    h = chart.header
    return {
        "header": {"format": h.format, "tracks": h.track_count, "division": h.division},
        "tempos": [{"time": t.time, "bpm": t.bpm, "tick_duration_ms": t.tick_duration_ms}
                   for t in chart.tempos],
        "notes": [{"time": n.time, "lane": n.lane, "kind": n.kind.value, "track": n.track}
                  for n in chart.notes],
        "failures": [{"track": f.track, "offset": f.offset, "error": f.error}
                     for f in chart.failures],
    }

def format_summary(chart: Chart) -> str:
    h = chart.header
    counts = chart.count_by_kind()
    lines = [
        f"format {h.format}, {h.track_count} track(s), division {h.division}",
        f"notes: {len(chart.notes)} (normal {counts[NoteKind.NORMAL]}, "
        f"long {counts[NoteKind.LONG_START]}/{counts[NoteKind.LONG_END]})",
        f"lanes: {', '.join(str(l) for l in chart.lanes()) or '-'}",
        f"duration: {chart.duration_ms:.1f} ms",
    ]
    for t in chart.tempos:
        lines.append(f"  tempo @ {t.time:10.1f} ms: {t.bpm:g} BPM ({t.tick_duration_ms:.4f} ms/tick)")
    for f in chart.failures:
        lines.append(f"  track {f.track} failed: {f.error}")
    return "\n".join(lines)

def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    cfg = config_from_args(args)
    _init_logging(cfg.log)
    if cfg.log.log_file:
        setup_crashlog()

    try:
        chart = parse_midi(args.midi, cfg.loader)
    except OSError as e:
        logging.error("Cannot read %s: %s", args.midi, e)
        return 1
    except MidiLoadError as e:
        report = log_exception("load_midi", e, source=args.midi)
        logging.error("Failed to load %s: %s (report: %s)", args.midi, e, report)
        return 1

    print(format_summary(chart))
    if args.json:
        with open(args.json, "w", encoding="utf-8") as f:
            json.dump(chart_to_dict(chart), f, ensure_ascii=False, indent=2)
        logging.info("Wrote %s", args.json)
    return 0

if __name__ == '__main__':
    sys.exit(main())
