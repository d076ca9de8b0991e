import logging

import pytest

from wallalign.model.geometry_primitives import Point3


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def unit_triangle():
    return [Point3(0.0, 0.0, 0.0), Point3(1.0, 0.0, 0.0), Point3(0.0, 1.0, 0.0)]


@pytest.fixture
def reset_package_logger():
    yield
    logger = logging.getLogger("wallalign")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
