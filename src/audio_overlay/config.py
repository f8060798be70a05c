from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, cast

from audio_overlay.engine import MAX_SAMPLE_RATE_HZ
from audio_overlay.samples import FormatName, SampleFormatError, resolve_format

Mode = Literal["add", "replace"]

MODE_VALUES: tuple[Mode, ...] = ("add", "replace")
DEFAULT_SAMPLE_RATE_HZ = 44100
DEFAULT_FORMAT: FormatName = "int16"

ENV_KEYS: dict[str, str] = {
    "sample_rate_hz": "AUDIO_OVERLAY_SAMPLE_RATE",
    "sample_format": "AUDIO_OVERLAY_FORMAT",
    "mode": "AUDIO_OVERLAY_MODE",
    "clip_floats": "AUDIO_OVERLAY_CLIP_FLOATS",
}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class OverlayConfig:
    sample_rate_hz: int
    sample_format: FormatName
    mode: Mode
    clip_floats: bool

    @property
    def add(self) -> bool:
        return self.mode == "add"


@dataclass(frozen=True)
class ConfigOverrides:
    sample_rate_hz: int | None = None
    sample_format: str | None = None
    mode: str | None = None
    clip_floats: bool | None = None


def load_env_values(env: Mapping[str, str] | None = None) -> dict[str, str]:
    source = os.environ if env is None else env
    resolved: dict[str, str] = {}
    for name, key in ENV_KEYS.items():
        value = source.get(key)
        if value is not None and value.strip() != "":
            resolved[name] = value
    return resolved


def _choose_string(cli_value: str | None, env_value: str | None, default: str) -> str:
    if cli_value is not None:
        return cli_value
    if env_value is not None:
        return env_value
    return default


def _parse_bool(raw_value: str, field_name: str) -> bool:
    normalized = raw_value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"Invalid value for {field_name}: '{raw_value}'. Expected on/off.")


def _parse_mode(raw_value: str) -> Mode:
    normalized = raw_value.strip().lower()
    if normalized not in MODE_VALUES:
        raise ConfigError(f"Invalid mode '{raw_value}'. Expected one of: {', '.join(MODE_VALUES)}.")
    return cast(Mode, normalized)


def _parse_sample_rate(raw_value: str) -> int:
    try:
        sample_rate_hz = int(raw_value.strip())
    except ValueError as exc:
        raise ConfigError(f"Invalid sample rate: '{raw_value}'.") from exc
    if not 1 <= sample_rate_hz <= MAX_SAMPLE_RATE_HZ:
        raise ConfigError(f"Sample rate must be between 1 and {MAX_SAMPLE_RATE_HZ}.")
    return sample_rate_hz


def _parse_format(raw_value: str) -> FormatName:
    try:
        return resolve_format(raw_value).name
    except SampleFormatError as exc:
        raise ConfigError(str(exc)) from exc


def build_config(
    overrides: ConfigOverrides,
    env: Mapping[str, str] | None = None,
) -> OverlayConfig:
    env_values = load_env_values(env)

    sample_rate_hz = _parse_sample_rate(
        _choose_string(
            str(overrides.sample_rate_hz) if overrides.sample_rate_hz is not None else None,
            env_values.get("sample_rate_hz"),
            str(DEFAULT_SAMPLE_RATE_HZ),
        )
    )
    sample_format = _parse_format(
        _choose_string(overrides.sample_format, env_values.get("sample_format"), DEFAULT_FORMAT)
    )
    mode = _parse_mode(_choose_string(overrides.mode, env_values.get("mode"), "add"))

    clip_floats: bool
    if overrides.clip_floats is not None:
        clip_floats = overrides.clip_floats
    elif "clip_floats" in env_values:
        clip_floats = _parse_bool(env_values["clip_floats"], "clip_floats")
    else:
        clip_floats = False

    return OverlayConfig(
        sample_rate_hz=sample_rate_hz,
        sample_format=sample_format,
        mode=mode,
        clip_floats=clip_floats,
    )
