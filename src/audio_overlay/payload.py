from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

Sample = int | float


@dataclass(frozen=True)
class OverlayRequest:
    source: tuple[Sample, ...]
    destination: tuple[Sample, ...] = ()
    time_s: float = 0.0
    sample_rate_hz: int | None = None
    sample_format: str | None = None
    mode: str | None = None


def _parse_numeric_sequence(value: object, field_name: str) -> tuple[Sample, ...]:
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of numbers.")
    parsed: list[Sample] = []
    for idx, item in enumerate(value):
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise ValueError(f"{field_name}[{idx}] must be numeric.")
        parsed.append(item)
    return tuple(parsed)


def _parse_optional_int(value: object, field_name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer.")
    return value


def _parse_optional_str(value: object, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string.")
    return value


def parse_request(text: str) -> OverlayRequest:
    cleaned = text.strip()
    if not cleaned:
        raise ValueError("Request payload is empty.")

    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON input: {exc.msg}") from exc

    if not isinstance(payload, dict):
        raise ValueError("JSON input must be an object.")
    if "source" not in payload:
        raise ValueError("Request requires a 'source' list.")

    source = _parse_numeric_sequence(payload["source"], "source")
    destination = _parse_numeric_sequence(payload.get("destination", []), "destination")

    time_raw = payload.get("time", 0.0)
    if isinstance(time_raw, bool) or not isinstance(time_raw, (int, float)):
        raise ValueError("time must be numeric.")

    return OverlayRequest(
        source=source,
        destination=destination,
        time_s=float(time_raw),
        sample_rate_hz=_parse_optional_int(payload.get("sample_rate_hz"), "sample_rate_hz"),
        sample_format=_parse_optional_str(payload.get("format"), "format"),
        mode=_parse_optional_str(payload.get("mode"), "mode"),
    )


def result_payload(
    samples: Sequence[Sample], sample_rate_hz: int, sample_format: str
) -> dict[str, Any]:
    return {
        "format": sample_format,
        "sample_rate_hz": sample_rate_hz,
        "length": len(samples),
        "duration_s": len(samples) / sample_rate_hz,
        "samples": list(samples),
    }


def render_result(samples: Sequence[Sample], sample_rate_hz: int, sample_format: str) -> str:
    return json.dumps(result_payload(samples, sample_rate_hz, sample_format), allow_nan=False)
