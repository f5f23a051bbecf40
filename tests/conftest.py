from __future__ import annotations

import pytest

from mindmap.animation import Animator
from mindmap.diagram import Diagram


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def diagram(clock: FakeClock) -> Diagram:
    return Diagram(
        palette=("#111111", "#222222", "#333333"),
        viewport=(1000.0, 600.0),
        animator=Animator(clock=clock),
    )
