# tests/conftest.py
from __future__ import annotations

from pathlib import Path

import pytest
from loguru import logger

from jobmatch.config.training_config import TrainingConfig
from jobmatch.registry.local import LocalModelRegistry
from jobmatch.store.memory import InMemoryDocumentStore
from tests.factories import history_store


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return history_store()


@pytest.fixture
def registry(tmp_path: Path) -> LocalModelRegistry:
    return LocalModelRegistry(tmp_path / "registry")


@pytest.fixture
def training_cfg(tmp_path: Path) -> TrainingConfig:
    return TrainingConfig(model_dir=str(tmp_path / "models"))
