from __future__ import annotations

import logging
from pathlib import Path

import pytest

from rsbuild.logging import CONSOLE_LOGGER_NAME
from tests._fixtures.project_builder import FakeCompiler, ProjectBuilder


@pytest.fixture(autouse=True)
def _reset_rsbuild_logging():  # type: ignore[no-untyped-def]
    """Drop handlers installed by configure_logging so streams do not leak between tests."""
    yield
    for name in ("rsbuild", CONSOLE_LOGGER_NAME):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


@pytest.fixture
def project(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture
def compiler(project: ProjectBuilder) -> FakeCompiler:
    """Provide a fake compiler writing into the project."""
    return FakeCompiler(project.path())
