from __future__ import annotations

import logging
from pathlib import Path

import pytest

from signalgraph.logging import ROOT_LOGGER
from tests._fixtures.graph_builder import GraphFactory
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def graph_factory() -> GraphFactory:
    """Provide an empty signal graph factory."""
    return GraphFactory()


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable Godot project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture(autouse=True)
def restore_signalgraph_logger():
    """Undo handlers and levels installed by configure_logging during a test."""
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
    logger.propagate = propagate
