# ========================= config.py =========================
from dataclasses import dataclass, field

TRACK_ERROR_POLICIES = ("abort", "skip")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

@dataclass
class LoaderConfig:
    on_track_error: str = "abort"   # or "skip": keep partial events and carry on
    default_bpm: float = 120.0      # used for notes before the first tempo event
    max_vlq_bytes: int = 4

    def __post_init__(self):
        if self.on_track_error not in TRACK_ERROR_POLICIES:
            raise ValueError(f"on_track_error must be one of {TRACK_ERROR_POLICIES}, got {self.on_track_error!r}")
        if self.default_bpm <= 0:
            raise ValueError(f"default_bpm must be > 0, got {self.default_bpm}")
        if self.max_vlq_bytes < 1:
            raise ValueError(f"max_vlq_bytes must be >= 1, got {self.max_vlq_bytes}")

@dataclass
class LogConfig:
    level: str = "INFO"
    log_file: bool = True

    def __post_init__(self):
        self.level = self.level.upper()
        if self.level not in LOG_LEVELS:
            raise ValueError(f"level must be one of {LOG_LEVELS}, got {self.level!r}")

@dataclass
class AppConfig:
    loader: LoaderConfig = field(default_factory=LoaderConfig)
    log: LogConfig = field(default_factory=LogConfig)
