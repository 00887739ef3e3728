from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace

from rollplan.data.coerce import parse_float_strict


@dataclass(frozen=True)
class Settings:
    """Static analytics configuration.

    Thresholds are machine-class constants supplied by the host application,
    never derived from the rows being aggregated.
    """

    roll_change_threshold: float = 2500.0
    roll_warning_threshold: float = 1500.0
    improvement_floor_pct: float = -5.0
    high_utilization_pct: float = 90.0
    log_level: str = "INFO"

    @classmethod
    def from_config(cls, config: Mapping[str, object] | None) -> Settings:
        """Build settings from a string key/value config table.

        Unknown keys are ignored; empty values keep the default.
        """
        settings = cls()
        if not config:
            return settings

        overrides: dict[str, object] = {}
        for f in fields(cls):
            raw = config.get(f.name)
            if raw is None or str(raw).strip() == "":
                continue
            if f.name == "log_level":
                overrides[f.name] = str(raw).strip().upper()
            else:
                overrides[f.name] = parse_float_strict(raw, field=f.name)

        settings = replace(settings, **overrides)
        if settings.roll_change_threshold <= 0:
            raise ValueError("roll_change_threshold must be positive")
        if settings.roll_warning_threshold > settings.roll_change_threshold:
            raise ValueError("roll_warning_threshold must not exceed roll_change_threshold")
        return settings


def default_settings() -> Settings:
    return Settings()
