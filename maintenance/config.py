"""Runtime settings: optional YAML file, then GEARGUARD_* environment overrides."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

import yaml
from jsonschema import ValidationError, validate

ENV_PREFIX = "GEARGUARD_"

SETTINGS_SCHEMA = {
    "type": "object",
    "properties": {
        "workspace": {"type": "string"},
        "logLevel": {"enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
        "defaultDurationMinutes": {"type": "integer", "minimum": 1},
        "dueSoonDays": {"type": "integer", "minimum": 0},
        "upcomingDays": {"type": "integer", "minimum": 0},
    },
    "additionalProperties": False,
}


@dataclass
class Settings:
    workspace: Optional[str] = None
    log_level: str = "INFO"
    default_duration_minutes: int = 60
    due_soon_days: int = 7
    upcoming_days: int = 30


# settings key -> (attribute, env suffix, converter)
_FIELDS = {
    "workspace": ("workspace", "WORKSPACE", str),
    "logLevel": ("log_level", "LOG_LEVEL", str.upper),
    "defaultDurationMinutes": ("default_duration_minutes", "DEFAULT_DURATION_MINUTES", int),
    "dueSoonDays": ("due_soon_days", "DUE_SOON_DAYS", int),
    "upcomingDays": ("upcoming_days", "UPCOMING_DAYS", int),
}


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build Settings from defaults, an optional YAML file and the environment.

    Environment variables win over the file. Both are validated against
    SETTINGS_SCHEMA, so a bad value raises jsonschema.ValidationError.
    """
    environ = os.environ if environ is None else environ
    raw = {}
    if path is not None:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

    for key, (_, suffix, convert) in _FIELDS.items():
        value = environ.get(ENV_PREFIX + suffix)
        if value:
            try:
                raw[key] = convert(value)
            except ValueError:
                raise ValidationError(
                    f"{ENV_PREFIX}{suffix} must be an integer, got '{value}'"
                ) from None
    validate(instance=raw, schema=SETTINGS_SCHEMA)

    settings = Settings()
    for key, value in raw.items():
        setattr(settings, _FIELDS[key][0], value)
    return settings


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
