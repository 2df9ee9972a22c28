"""Engine configuration."""
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class EngineConfig:
    """Configuration shared by the calendar, workflows and roster manager."""

    # Calendar
    week_start: int = 0  # 0 = Monday ... 6 = Sunday
    day_start_hour: int = 0
    day_end_hour: int = 24
    invalid_time_label: str = "Invalid time"

    # Workflows
    require_swap_reject_reason: bool = False  # False: a missing reason is only logged
    enforce_availability: bool = True
    reject_siblings_on_fill: bool = False  # False: siblings stay pending but non-actionable

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        self.week_start = int(self.week_start) % 7
        self.day_start_hour = min(max(int(self.day_start_hour), 0), 23)
        self.day_end_hour = min(max(int(self.day_end_hour), 1), 24)
        if self.day_end_hour <= self.day_start_hour:
            self.day_end_hour = 24

    def to_dict(self) -> Dict:
        """Serialize to dictionary."""
        return {
            "week_start": self.week_start,
            "day_start_hour": self.day_start_hour,
            "day_end_hour": self.day_end_hour,
            "invalid_time_label": self.invalid_time_label,
            "require_swap_reject_reason": self.require_swap_reject_reason,
            "enforce_availability": self.enforce_availability,
            "reject_siblings_on_fill": self.reject_siblings_on_fill,
            "log_level": self.log_level,
            "log_file": self.log_file,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "EngineConfig":
        """Create from dictionary, ignoring unknown keys."""
        cfg = cls()
        for key, value in d.items():
            if hasattr(cfg, key):
                setattr(cfg, key, value)
        cfg.__post_init__()
        return cfg
