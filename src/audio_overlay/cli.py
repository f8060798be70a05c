from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import typer

from audio_overlay.config import ConfigError, ConfigOverrides, OverlayConfig, build_config
from audio_overlay.engine import OverlayError, overlay, start_index
from audio_overlay.logging_setup import setup_logging
from audio_overlay.payload import OverlayRequest, parse_request, render_result
from audio_overlay.samples import (
    SAMPLE_FORMATS,
    SampleFormatError,
    format_table,
    formats_to_payload,
    resolve_format,
)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Overlay one audio sample buffer onto another.",
)
logger = logging.getLogger("audio_overlay.cli")


@app.callback()
def app_callback(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
    quiet: bool = typer.Option(False, "--quiet", help="Only log warnings and errors."),
    log_file: Path | None = typer.Option(None, "--log-file", help="Optional log file path."),
) -> None:
    setup_logging(debug=debug, log_file=log_file, quiet=quiet)


def _read_request(input_path: Path | None) -> OverlayRequest:
    if input_path is None:
        raw = sys.stdin.read()
    else:
        try:
            raw = input_path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.debug("Failed to read %s: %s", input_path, exc)
            raise typer.BadParameter(
                f"Cannot read request file '{input_path}'.", param_hint="--input"
            ) from exc
    try:
        return parse_request(raw)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--input") from exc


def _resolve_config(
    request: OverlayRequest,
    *,
    sample_rate_hz: int | None,
    sample_format: str | None,
    mode: str | None,
    clip_floats: bool | None,
) -> OverlayConfig:
    overrides = ConfigOverrides(
        sample_rate_hz=sample_rate_hz if sample_rate_hz is not None else request.sample_rate_hz,
        sample_format=sample_format if sample_format is not None else request.sample_format,
        mode=mode if mode is not None else request.mode,
        clip_floats=clip_floats,
    )
    try:
        return build_config(overrides)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command("mix")
def mix_command(
    input_path: Path | None = typer.Option(
        None, "--input", help="Request JSON file. Reads stdin when omitted."
    ),
    time_s: float | None = typer.Option(
        None, "--time", help="Start offset of the source, in seconds."
    ),
    sample_rate_hz: int | None = typer.Option(None, "--rate", help="Sample rate in Hz."),
    sample_format: str | None = typer.Option(
        None, "--format", help="int8|int16|int32|int64|float32|float64"
    ),
    mode: str | None = typer.Option(None, "--mode", help="add|replace"),
    clip_floats: bool | None = typer.Option(
        None,
        "--clip-floats/--no-clip-floats",
        help="Clamp float sums to [-1.0, 1.0].",
    ),
) -> None:
    request = _read_request(input_path)
    config = _resolve_config(
        request,
        sample_rate_hz=sample_rate_hz,
        sample_format=sample_format,
        mode=mode,
        clip_floats=clip_floats,
    )
    offset_s = time_s if time_s is not None else request.time_s
    fmt = resolve_format(config.sample_format)
    source = fmt.coerce(request.source)
    destination = fmt.coerce(request.destination)

    try:
        index = start_index(offset_s, config.sample_rate_hz)
        overlay(
            source,
            destination,
            offset_s,
            config.sample_rate_hz,
            config.add,
            sample_format=fmt,
            clip_floats=config.clip_floats,
        )
    except (OverlayError, SampleFormatError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    logger.debug(
        "Overlaid %d %s samples at index %d (%s); destination now %d samples.",
        len(source),
        fmt.name,
        index,
        config.mode,
        len(destination),
    )
    try:
        rendered = render_result(destination, config.sample_rate_hz, fmt.name)
    except ValueError as exc:
        raise typer.BadParameter(
            "Result contains non-finite samples (inf or NaN), which JSON cannot represent."
        ) from exc
    typer.echo(rendered)


@app.command("formats")
def formats_command(
    json_output: bool = typer.Option(False, "--json", help="Return JSON output."),
) -> None:
    formats = list(SAMPLE_FORMATS.values())
    if json_output:
        typer.echo(json.dumps(formats_to_payload(formats), indent=2))
        return
    typer.echo(format_table(formats))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
