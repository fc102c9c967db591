from __future__ import annotations

from typing import Callable

import pytest

from gdassist.pipeline import MaterializationPipeline
from gdassist.storage import MemoryStorage
from gdassist.uid import UidGenerator

FIXED_TIME = 1700000000.0


@pytest.fixture
def storage() -> MemoryStorage:
    """An empty in-memory project."""
    return MemoryStorage()


@pytest.fixture
def uid_generator() -> UidGenerator:
    return UidGenerator.seeded(7)


@pytest.fixture
def clock() -> Callable[[], float]:
    return lambda: FIXED_TIME


@pytest.fixture
def pipeline(storage: MemoryStorage, uid_generator: UidGenerator, clock) -> MaterializationPipeline:
    return MaterializationPipeline(storage, uid_generator=uid_generator, clock=clock)
