import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from audio_overlay.cli import app


@pytest.fixture(autouse=True)
def _clear_overlay_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "AUDIO_OVERLAY_SAMPLE_RATE",
        "AUDIO_OVERLAY_FORMAT",
        "AUDIO_OVERLAY_MODE",
        "AUDIO_OVERLAY_CLIP_FLOATS",
    ):
        monkeypatch.delenv(key, raising=False)


def test_mix_reads_stdin_and_prints_result() -> None:
    runner = CliRunner()
    payload = '{"source":[1,2,3],"destination":[10,20],"time":0,"sample_rate_hz":1}'
    result = runner.invoke(app, ["mix"], input=payload)
    assert result.exit_code == 0, result.output
    rendered = json.loads(result.stdout)
    assert rendered["samples"] == [11, 22, 3]
    assert rendered["format"] == "int16"
    assert rendered["length"] == 3


def test_mix_flags_override_payload_fields(tmp_path: Path) -> None:
    request_path = tmp_path / "request.json"
    request_path.write_text(
        json.dumps(
            {
                "source": [5],
                "destination": [1, 2],
                "time": 0,
                "sample_rate_hz": 8000,
                "mode": "add",
            }
        ),
        encoding="utf-8",
    )
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["mix", "--input", str(request_path), "--time", "2", "--rate", "1", "--mode", "replace"],
    )
    assert result.exit_code == 0, result.output
    rendered = json.loads(result.stdout)
    assert rendered["samples"] == [1, 2, 5]
    assert rendered["sample_rate_hz"] == 1


def test_mix_environment_supplies_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUDIO_OVERLAY_FORMAT", "float64")
    monkeypatch.setenv("AUDIO_OVERLAY_CLIP_FLOATS", "on")
    runner = CliRunner()
    result = runner.invoke(app, ["mix", "--rate", "1"], input='{"source":[0.5],"destination":[0.9]}')
    assert result.exit_code == 0, result.output
    rendered = json.loads(result.stdout)
    assert rendered["format"] == "float64"
    assert rendered["samples"] == [1.0]


def test_mix_saturates_int16() -> None:
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["mix", "--rate", "1", "--format", "int16"],
        input='{"source":[10],"destination":[32760]}',
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["samples"] == [32767]


@pytest.mark.parametrize(
    ("args", "payload", "message"),
    [
        (["mix", "--mode", "blend"], '{"source":[1]}', "invalid mode"),
        (["mix", "--time=-1"], '{"source":[1]}', "cannot be negative"),
        (["mix", "--format", "int8"], '{"source":[400]}', "outside the int8 range"),
        (["mix"], "not json", "invalid json input"),
    ],
)
def test_mix_reports_bad_input_without_traceback(
    args: list[str], payload: str, message: str
) -> None:
    runner = CliRunner()
    result = runner.invoke(app, args, input=payload)
    assert result.exit_code == 2
    assert message in result.output.lower()
    assert "Traceback" not in result.output


def test_mix_reports_missing_input_file(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["mix", "--input", str(tmp_path / "missing.json")])
    assert result.exit_code == 2
    assert "cannot read request file" in result.output.lower()


def test_formats_lists_table_and_json() -> None:
    runner = CliRunner()
    table = runner.invoke(app, ["formats"])
    assert table.exit_code == 0
    assert "float64" in table.stdout

    as_json = runner.invoke(app, ["formats", "--json"])
    assert as_json.exit_code == 0
    names = [item["name"] for item in json.loads(as_json.stdout)]
    assert names == ["int8", "int16", "int32", "int64", "float32", "float64"]


def test_mix_reports_offset_too_large_to_index() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["mix"], input='{"source":[1],"time":1e308}')
    assert result.exit_code == 2
    assert "too large" in result.output.lower()
    assert "Traceback" not in result.output


def test_mix_reports_non_finite_float_results() -> None:
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["mix", "--rate", "1", "--format", "float64"],
        input='{"source":[1e308],"destination":[1e308]}',
    )
    assert result.exit_code == 2
    assert "non-finite" in result.output.lower()
