from __future__ import annotations

import logging
import math
import numbers
from collections.abc import MutableSequence, Sequence
from itertools import repeat
from typing import Any

import numpy as np
import numpy.typing as npt

from audio_overlay.samples import (
    FLOAT_NORMALIZED_MAX,
    FLOAT_NORMALIZED_MIN,
    SampleFormat,
    format_for_dtype,
    resolve_format,
)

MAX_SAMPLE_RATE_HZ = 4294967295

logger = logging.getLogger("audio_overlay.engine")


class OverlayError(ValueError):
    pass


def _check_time(time_s: float) -> float:
    if isinstance(time_s, (bool, np.bool_)) or not isinstance(time_s, numbers.Real):
        raise OverlayError("time_s must be a number.")
    seconds = float(time_s)
    if not math.isfinite(seconds):
        raise OverlayError("time_s must be finite.")
    if seconds < 0:
        raise OverlayError("time_s cannot be negative.")
    return seconds


def _check_sample_rate(sample_rate_hz: int) -> int:
    if isinstance(sample_rate_hz, (bool, np.bool_)) or not isinstance(
        sample_rate_hz, numbers.Integral
    ):
        raise OverlayError("sample_rate_hz must be an integer.")
    rate = int(sample_rate_hz)
    if rate <= 0:
        raise OverlayError("sample_rate_hz must be positive.")
    if rate > MAX_SAMPLE_RATE_HZ:
        raise OverlayError(f"sample_rate_hz cannot exceed {MAX_SAMPLE_RATE_HZ}.")
    return rate


def start_index(time_s: float, sample_rate_hz: int) -> int:
    position = _check_time(time_s) * _check_sample_rate(sample_rate_hz)
    if not math.isfinite(position):
        raise OverlayError("time_s * sample_rate_hz is too large to index a sample.")
    # Round half away from zero; position is never negative here.
    whole = math.floor(position)
    return whole + 1 if position - whole >= 0.5 else whole


def _validate_window(
    fmt: SampleFormat,
    source: Sequence[Any],
    destination: MutableSequence[Any],
    index: int,
    add: bool,
    source_name: str,
    destination_name: str,
) -> None:
    fmt.validate(source, source_name)
    if not add:
        return
    # Only the overlapped slots are read back.
    stop = min(len(destination), index + len(source))
    if index < stop:
        fmt.validate(destination[index:stop], destination_name, offset=index)


def _write(
    fmt: SampleFormat,
    source: Sequence[Any],
    destination: MutableSequence[Any],
    index: int,
    add: bool,
    clip_floats: bool,
) -> None:
    if len(source) == 0:
        return

    required_length = index + len(source)
    missing = required_length - len(destination)
    if missing > 0:
        logger.debug(
            "Growing destination from %d to %d samples (start_index=%d).",
            len(destination),
            required_length,
            index,
        )
        destination.extend(repeat(fmt.zero, missing))

    with np.errstate(over="ignore", invalid="ignore"):
        if not add:
            for offset, sample in enumerate(source):
                destination[index + offset] = fmt.store(sample)
            return

        combine = fmt.combiner(clip_floats)
        for offset, sample in enumerate(source):
            position = index + offset
            destination[position] = combine(destination[position], sample)


def overlay(
    source: Sequence[Any],
    destination: MutableSequence[Any],
    time_s: float,
    sample_rate_hz: int,
    add: bool,
    *,
    sample_format: str | SampleFormat = "int16",
    clip_floats: bool = False,
) -> None:
    if source is destination:
        raise OverlayError("source and destination must be different sequences.")
    fmt = resolve_format(sample_format)
    index = start_index(time_s, sample_rate_hz)
    _validate_window(fmt, source, destination, index, add, "source", "destination")
    _write(fmt, source, destination, index, add, clip_floats)


def _saturating_add_array(
    current: npt.NDArray[Any], incoming: npt.NDArray[Any], fmt: SampleFormat
) -> npt.NDArray[Any]:
    total = current + incoming
    total[(current > 0) & (incoming > 0) & (total < 0)] = fmt.max_value
    total[(current < 0) & (incoming < 0) & (total >= 0)] = fmt.min_value
    return total


def overlay_array(
    source: npt.NDArray[Any],
    destination: npt.NDArray[Any],
    time_s: float,
    sample_rate_hz: int,
    add: bool,
    *,
    clip_floats: bool = False,
) -> npt.NDArray[Any]:
    if not isinstance(source, np.ndarray) or not isinstance(destination, np.ndarray):
        raise OverlayError("overlay_array requires numpy arrays.")
    if source.ndim != 1 or destination.ndim != 1:
        raise OverlayError("overlay_array requires one-dimensional arrays.")
    if source.dtype != destination.dtype:
        raise OverlayError(
            f"Sample dtypes differ: source={source.dtype} destination={destination.dtype}."
        )
    fmt = format_for_dtype(destination.dtype)
    index = start_index(time_s, sample_rate_hz)

    required_length = index + source.shape[0]
    output = destination
    if source.shape[0] > 0 and required_length > destination.shape[0]:
        logger.debug(
            "Reallocating %s destination from %d to %d samples (start_index=%d).",
            fmt.name,
            destination.shape[0],
            required_length,
            index,
        )
        output = np.zeros(required_length, dtype=destination.dtype)
        output[: destination.shape[0]] = destination
    if source.shape[0] == 0:
        return output

    window = output[index:required_length]
    if not add:
        window[...] = source
    elif fmt.is_integer:
        window[...] = _saturating_add_array(window, source, fmt)
    else:
        with np.errstate(over="ignore", invalid="ignore"):
            summed = window + source
        if clip_floats:
            np.clip(summed, FLOAT_NORMALIZED_MIN, FLOAT_NORMALIZED_MAX, out=summed)
        window[...] = summed
    return output


def overlay_channels(
    sources: Sequence[Sequence[Any]],
    destinations: Sequence[MutableSequence[Any]],
    time_s: float,
    sample_rate_hz: int,
    add: bool,
    *,
    sample_format: str | SampleFormat = "int16",
    clip_floats: bool = False,
) -> None:
    if len(sources) != len(destinations):
        raise OverlayError(
            f"Channel count mismatch: {len(sources)} source(s), {len(destinations)} destination(s)."
        )
    destination_ids = {id(channel) for channel in destinations}
    if len(destination_ids) != len(destinations):
        raise OverlayError("Each destination channel must be a distinct sequence.")
    for channel, source in enumerate(sources):
        if id(source) in destination_ids:
            raise OverlayError(f"sources[{channel}] is also a destination channel.")

    fmt = resolve_format(sample_format)
    index = start_index(time_s, sample_rate_hz)
    for channel, (source, destination) in enumerate(zip(sources, destinations)):
        _validate_window(
            fmt,
            source,
            destination,
            index,
            add,
            f"sources[{channel}]",
            f"destinations[{channel}]",
        )

    for source, destination in zip(sources, destinations):
        _write(fmt, source, destination, index, add, clip_floats)
