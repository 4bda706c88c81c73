# utils/crashlog.py
import os, sys, faulthandler, datetime, traceback
from typing import Optional

_fault_file = None
_log_root: Optional[str] = None

def set_log_dir(path: Optional[str]):
    """Override where logs and error reports go (None restores the default)."""
    global _log_root
    _log_root = path

def log_dir() -> str:
    d = _log_root or os.path.join(os.getcwd(), "logs")
    os.makedirs(d, exist_ok=True)
    return d

def _new_log_path(prefix: str = "crash") -> str:
    stamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    return os.path.join(log_dir(), f"{prefix}-{stamp}.txt")

def setup_crashlog():
    global _fault_file
    try:
        if _fault_file is None:
            _fault_file = open(_new_log_path("native"), "w", encoding="utf-8")
        faulthandler.enable(_fault_file, all_threads=True)
    except OSError:
        _fault_file = None

    def _hook(exc_type, exc, tb):
        try:
            with open(_new_log_path("crash"), "w", encoding="utf-8") as out:
                out.write("UNCAUGHT EXCEPTION\n")
                out.write("=" * 60 + "\n")
                traceback.print_exception(exc_type, exc, tb, file=out)
        finally:
            sys.__excepthook__(exc_type, exc, tb)
    sys.excepthook = _hook

def log_exception(title: str, exc: BaseException, source: Optional[str] = None) -> str:
    """Write an error report and return its path. Load errors get their track/offset spelled out."""
    path = _new_log_path("error")
    with open(path, "w", encoding="utf-8") as out:
        out.write(f"[{title}] {type(exc).__name__}: {exc}\n")
        if source:
            out.write(f"File: {source}\n")
        track = getattr(exc, "track", None)
        offset = getattr(exc, "offset", None)
        if track is not None:
            out.write(f"Track: {track}\n")
        if offset is not None:
            out.write(f"Byte offset: {offset} (0x{offset:x})\n")
        out.write("Traceback:\n")
        out.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return path
