from __future__ import annotations

import json
import logging
from pathlib import Path

from fpath.logger import configure_logging, log_event


def read_records(log_file: Path) -> list[dict[str, object]]:
    lines = log_file.read_text(encoding="utf-8").strip().splitlines()
    return [json.loads(line) for line in lines]


def test_log_event_sanitizes_home_directory(tmp_path: Path) -> None:
    log_file = tmp_path / "fpath.log"
    logger = configure_logging(log_file, level=logging.INFO)
    sensitive_path = Path.home() / "Documents" / "secret.txt"
    log_event(
        logger,
        level=logging.INFO,
        action="test",
        message=f"Processing {sensitive_path}",
        bytes_processed=12,
        extra={"path": str(sensitive_path), "paths": [str(sensitive_path)]},
    )
    for handler in logger.handlers:
        handler.flush()

    payload = read_records(log_file)[-1]
    assert payload["action"] == "test"
    assert payload["bytes"] == 12
    assert payload["path"] == "~/Documents/secret.txt"
    assert payload["paths"] == ["~/Documents/secret.txt"]


def test_log_event_respects_level(tmp_path: Path) -> None:
    log_file = tmp_path / "quiet.log"
    logger = configure_logging(log_file, level=logging.WARNING)
    log_event(logger, level=logging.INFO, action="skipped", message="not written")
    log_event(logger, level=logging.ERROR, action="kept", message="written", duration_ms=1.23456)
    for handler in logger.handlers:
        handler.flush()

    records = read_records(log_file)
    assert [record["action"] for record in records] == ["kept"]
    assert records[0]["ms"] == 1.235
    assert records[0]["level"] == "ERROR"


def test_plain_records_use_logger_name_as_action(tmp_path: Path) -> None:
    log_file = tmp_path / "plain.log"
    configure_logging(log_file, level=logging.DEBUG)
    logging.getLogger("fpath.path").debug("listing %s", Path.home() / "src")
    for handler in logging.getLogger("fpath").handlers:
        handler.flush()

    record = read_records(log_file)[-1]
    assert record["action"] == "fpath.path"
    assert record["message"] == "listing ~/src"
    assert record["level"] == "DEBUG"
