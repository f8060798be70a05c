from __future__ import annotations

import numbers
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Literal

import numpy as np
import numpy.typing as npt

FormatName = Literal["int8", "int16", "int32", "int64", "float32", "float64"]

INT8_MIN = -128
INT8_MAX = 127
INT16_MIN = -32768
INT16_MAX = 32767
INT32_MIN = -2147483648
INT32_MAX = 2147483647
INT64_MIN = -9223372036854775808
INT64_MAX = 9223372036854775807
FLOAT32_MAX = 3.4028234663852886e38
FLOAT64_MAX = 1.7976931348623157e308

FLOAT_NORMALIZED_MIN = -1.0
FLOAT_NORMALIZED_MAX = 1.0

FORMAT_NAMES: tuple[FormatName, ...] = ("int8", "int16", "int32", "int64", "float32", "float64")

FORMAT_ALIASES: dict[str, FormatName] = {
    "i1": "int8",
    "byte": "int8",
    "i2": "int16",
    "short": "int16",
    "i4": "int32",
    "i8": "int64",
    "f4": "float32",
    "single": "float32",
    "f8": "float64",
    "float": "float64",
    "double": "float64",
}


class SampleFormatError(ValueError):
    pass


def clamp(value: Any, lower: Any, upper: Any) -> Any:
    if value > upper:
        return upper
    if value < lower:
        return lower
    return value


@dataclass(frozen=True)
class SampleFormat:
    name: FormatName
    dtype: np.dtype[Any]
    zero: int | float
    min_value: int | float
    max_value: int | float
    is_integer: bool

    def combine(self, current: Any, incoming: Any) -> Any:
        if self.is_integer:
            return clamp(int(current) + int(incoming), self.min_value, self.max_value)
        if self.name == "float32":
            return float(np.float32(current) + np.float32(incoming))
        return current + incoming

    def store(self, value: Any) -> Any:
        if self.name == "float32":
            return float(np.float32(value))
        return value

    def combiner(self, clip_floats: bool = False) -> Callable[[Any, Any], Any]:
        if self.is_integer or not clip_floats:
            return self.combine

        def clipped(current: Any, incoming: Any) -> Any:
            return clamp(
                self.combine(current, incoming), FLOAT_NORMALIZED_MIN, FLOAT_NORMALIZED_MAX
            )

        return clipped

    def validate(self, values: Iterable[Any], field_name: str, offset: int = 0) -> None:
        for idx, value in enumerate(values, start=offset):
            if isinstance(value, (bool, np.bool_)):
                raise SampleFormatError(f"{field_name}[{idx}] must be numeric, not a boolean.")
            if self.is_integer:
                if not isinstance(value, numbers.Integral):
                    raise SampleFormatError(
                        f"{field_name}[{idx}] must be an integer for {self.name} samples."
                    )
                if not self.min_value <= value <= self.max_value:
                    raise SampleFormatError(
                        f"{field_name}[{idx}]={value} is outside the {self.name} range "
                        f"[{self.min_value}, {self.max_value}]."
                    )
            elif not isinstance(value, numbers.Real):
                raise SampleFormatError(f"{field_name}[{idx}] must be a real number.")

    def coerce(self, values: Sequence[int | float]) -> list[int | float]:
        if self.is_integer:
            return [
                int(value) if isinstance(value, float) and value.is_integer() else value
                for value in values
            ]
        if self.name == "float32":
            return [float(np.float32(value)) for value in values]
        return [float(value) for value in values]


SAMPLE_FORMATS: dict[FormatName, SampleFormat] = {
    "int8": SampleFormat("int8", np.dtype(np.int8), 0, INT8_MIN, INT8_MAX, True),
    "int16": SampleFormat("int16", np.dtype(np.int16), 0, INT16_MIN, INT16_MAX, True),
    "int32": SampleFormat("int32", np.dtype(np.int32), 0, INT32_MIN, INT32_MAX, True),
    "int64": SampleFormat("int64", np.dtype(np.int64), 0, INT64_MIN, INT64_MAX, True),
    "float32": SampleFormat(
        "float32", np.dtype(np.float32), 0.0, -FLOAT32_MAX, FLOAT32_MAX, False
    ),
    "float64": SampleFormat(
        "float64", np.dtype(np.float64), 0.0, -FLOAT64_MAX, FLOAT64_MAX, False
    ),
}


def resolve_format(raw_value: str | SampleFormat) -> SampleFormat:
    if isinstance(raw_value, SampleFormat):
        return raw_value
    normalized = raw_value.strip().lower().lstrip("<>=|")
    name = FORMAT_ALIASES.get(normalized, normalized)
    sample_format = SAMPLE_FORMATS.get(name)  # type: ignore[call-overload]
    if sample_format is None:
        raise SampleFormatError(
            f"Unsupported sample format '{raw_value}'. "
            f"Expected one of: {', '.join(FORMAT_NAMES)}."
        )
    return sample_format


def format_for_dtype(dtype: npt.DTypeLike) -> SampleFormat:
    resolved = np.dtype(dtype)
    for sample_format in SAMPLE_FORMATS.values():
        if (sample_format.dtype.kind, sample_format.dtype.itemsize) == (
            resolved.kind,
            resolved.itemsize,
        ):
            return sample_format
    raise SampleFormatError(
        f"Unsupported sample dtype '{resolved}'. Expected one of: {', '.join(FORMAT_NAMES)}."
    )


def saturating_add(current: Any, incoming: Any, sample_format: str | SampleFormat) -> Any:
    return resolve_format(sample_format).combine(current, incoming)


def format_table(formats: Sequence[SampleFormat]) -> str:
    header = ("Format", "Min", "Max", "Saturates")
    rows: list[tuple[str, str, str, str]] = [
        (
            item.name,
            str(item.min_value),
            str(item.max_value),
            "yes" if item.is_integer else "no",
        )
        for item in formats
    ]
    widths = [max([len(header[col]), *(len(row[col]) for row in rows)]) for col in range(4)]
    lines = [
        "  ".join(f"{header[col]:<{widths[col]}}" for col in range(4)),
        "  ".join("-" * widths[col] for col in range(4)),
    ]
    for row in rows:
        lines.append("  ".join(f"{row[col]:<{widths[col]}}" for col in range(4)))
    return "\n".join(lines)


def formats_to_payload(formats: Sequence[SampleFormat]) -> list[dict[str, Any]]:
    return [
        {
            "name": item.name,
            "dtype": item.dtype.str,
            "min": item.min_value,
            "max": item.max_value,
            "saturates": item.is_integer,
        }
        for item in formats
    ]
