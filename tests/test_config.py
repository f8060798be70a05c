import pytest

from audio_overlay.config import (
    DEFAULT_SAMPLE_RATE_HZ,
    ConfigError,
    ConfigOverrides,
    build_config,
    load_env_values,
)


def test_defaults_apply_without_flags_or_environment() -> None:
    config = build_config(ConfigOverrides(), env={})
    assert config.sample_rate_hz == DEFAULT_SAMPLE_RATE_HZ
    assert config.sample_format == "int16"
    assert config.mode == "add"
    assert config.add is True
    assert config.clip_floats is False


def test_flags_override_environment_values() -> None:
    env = {
        "AUDIO_OVERLAY_SAMPLE_RATE": "8000",
        "AUDIO_OVERLAY_FORMAT": "float32",
        "AUDIO_OVERLAY_MODE": "add",
        "AUDIO_OVERLAY_CLIP_FLOATS": "on",
    }
    overrides = ConfigOverrides(sample_rate_hz=48000, mode="replace", clip_floats=False)
    config = build_config(overrides, env=env)
    assert config.sample_rate_hz == 48000
    assert config.sample_format == "float32"
    assert config.mode == "replace"
    assert config.add is False
    assert config.clip_floats is False


def test_environment_values_are_loaded() -> None:
    env = {
        "AUDIO_OVERLAY_SAMPLE_RATE": " 22050 ",
        "AUDIO_OVERLAY_FORMAT": "<i4",
        "AUDIO_OVERLAY_MODE": "REPLACE",
        "AUDIO_OVERLAY_CLIP_FLOATS": "yes",
    }
    config = build_config(ConfigOverrides(), env=env)
    assert config.sample_rate_hz == 22050
    assert config.sample_format == "int32"
    assert config.mode == "replace"
    assert config.clip_floats is True


def test_empty_environment_values_are_ignored() -> None:
    values = load_env_values({"AUDIO_OVERLAY_FORMAT": "", "AUDIO_OVERLAY_MODE": "  "})
    assert values == {}


@pytest.mark.parametrize(
    ("env", "message"),
    [
        ({"AUDIO_OVERLAY_SAMPLE_RATE": "fast"}, "Invalid sample rate"),
        ({"AUDIO_OVERLAY_SAMPLE_RATE": "0"}, "between 1 and"),
        ({"AUDIO_OVERLAY_FORMAT": "uint8"}, "Unsupported sample format"),
        ({"AUDIO_OVERLAY_MODE": "blend"}, "Invalid mode"),
        ({"AUDIO_OVERLAY_CLIP_FLOATS": "maybe"}, "clip_floats"),
    ],
)
def test_invalid_values_raise_config_error(env: dict[str, str], message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        build_config(ConfigOverrides(), env=env)


def test_negative_sample_rate_override_is_rejected() -> None:
    with pytest.raises(ConfigError):
        build_config(ConfigOverrides(sample_rate_hz=-1), env={})
