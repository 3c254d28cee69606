from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from seatsync.config import SeatsConfig
from seatsync.session import SeatSession
from tests.support.upstream import FakeUpstream, make_client_factory

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def seats_config() -> SeatsConfig:
    return SeatsConfig(api_key="test-key", base_url="https://seats.example.test")


@pytest.fixture
def session(
    seats_config: SeatsConfig,
    upstream: FakeUpstream,
    sleeps: list[float],
) -> Iterator[SeatSession]:
    with SeatSession(
        seats_config,
        client_factory=make_client_factory(upstream, sleeps),
    ) as seat_session:
        yield seat_session
