"""Tests for signalgraph.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from signalgraph.logging import configure_logging, get_logger


def test_component_and_module_names_share_a_logger() -> None:
    assert get_logger("scanner") is get_logger("signalgraph.scanner")
    assert get_logger("clustering.community").name == "signalgraph.clustering.community"
    assert get_logger().name == "signalgraph"
    assert get_logger("signalgraph").name == "signalgraph"


def test_stream_shows_info_and_file_keeps_debug(tmp_path: Path, capsys) -> None:
    log_file = tmp_path / "logs" / "run.log"

    configure_logging(log_file=log_file)
    get_logger("graph").debug("merged %d files", 3)
    get_logger("graph").info("built graph")
    for handler in logging.getLogger("signalgraph").handlers:
        handler.flush()

    err = capsys.readouterr().err
    assert "[signalgraph] INFO built graph" in err
    assert "merged 3 files" not in err
    written = log_file.read_text(encoding="utf-8")
    assert "DEBUG signalgraph.graph: merged 3 files" in written
    assert "INFO signalgraph.graph: built graph" in written


def test_verbose_stream_shows_debug(capsys) -> None:
    configure_logging(verbose=True)
    get_logger("scanner").debug("walking project")

    assert "[signalgraph] DEBUG walking project" in capsys.readouterr().err


def test_reconfiguring_replaces_handlers() -> None:
    configure_logging()
    configure_logging(verbose=True)

    logger = logging.getLogger("signalgraph")
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
