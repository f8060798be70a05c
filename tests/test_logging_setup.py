import logging
from pathlib import Path

from audio_overlay.engine import overlay
from audio_overlay.logging_setup import resolve_level, setup_logging


def test_setup_logging_creates_log_file_and_writes(tmp_path: Path) -> None:
    log_file = tmp_path / "audio_overlay" / "overlay.log"
    logger = setup_logging(debug=True, log_file=log_file)
    logger.info("hello from test")

    assert log_file.exists()
    content = log_file.read_text(encoding="utf-8")
    assert "hello from test" in content


def test_engine_growth_is_logged_at_debug(tmp_path: Path) -> None:
    log_file = tmp_path / "overlay.log"
    setup_logging(debug=True, log_file=log_file)
    destination = [1]
    overlay([2, 3], destination, 1.0, 1, True)

    content = log_file.read_text(encoding="utf-8")
    assert "audio_overlay.engine" in content
    assert "Growing destination from 1 to 3 samples" in content


def test_quiet_level_only_applies_without_debug() -> None:
    assert resolve_level(debug=False, quiet=True) == logging.WARNING
    assert resolve_level(debug=True, quiet=True) == logging.DEBUG
    assert resolve_level(debug=False, quiet=False) == logging.INFO
