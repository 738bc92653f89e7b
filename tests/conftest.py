from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from nixgen.backends import RenderingBackend, nixos_backend
from nixgen.emit import ModuleEmitter
from nixgen.logging import reset_logging
from tests._fixtures.model_builder import ModelWriter


@pytest.fixture
def backend() -> RenderingBackend:
    return nixos_backend()


@pytest.fixture
def emitter(backend: RenderingBackend) -> ModuleEmitter:
    return ModuleEmitter(backend)


@pytest.fixture
def model_writer(tmp_path: Path) -> ModelWriter:
    """Provide a writer for YAML model and config files under tmp_path."""
    return ModelWriter(tmp_path)


@pytest.fixture(autouse=True)
def _reset_nixgen_logger() -> Iterator[None]:
    # configure_logging() detaches the logger from the root; undo that for caplog.
    yield
    reset_logging()
