"""Shared fixtures for maptrack tests."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from maptrack.config import Config
from maptrack.controller import InteractionController
from maptrack.models.state import MemoryBlobStore, PersistenceGateway
from maptrack.services.position import FixedPositionSource
from maptrack.views.form import FormState
from maptrack.views.listing import ActivityList
from maptrack.views.map import MapView

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from maptrack.errors import PositionUnavailable
    from maptrack.models.activity import Coordinates

LONDON = (51.5, -0.12)
FIXED_NOW = datetime(2025, 6, 14, 9, 30, 0)


class DeferredPositionSource:
    """Position source whose answer is delivered later by the test."""

    def __init__(self) -> None:
        self.on_success: Callable[[Coordinates], None] | None = None
        self.on_failure: Callable[[PositionUnavailable], None] | None = None
        self.requests = 0

    def get_current_position(
        self,
        on_success: Callable[[Coordinates], None],
        on_failure: Callable[[PositionUnavailable], None],
    ) -> None:
        self.requests += 1
        self.on_success = on_success
        self.on_failure = on_failure

    def succeed(self, coords: Coordinates) -> None:
        assert self.on_success is not None
        self.on_success(coords)

    def fail(self, error: PositionUnavailable) -> None:
        assert self.on_failure is not None
        self.on_failure(error)


@pytest.fixture(autouse=True)
def _reset_maptrack_logging() -> Generator[None, None, None]:
    """Drop handlers installed by CLI runs so they don't leak between tests."""
    yield
    for name in ("maptrack", "urllib3"):
        log = logging.getLogger(name)
        for handler in list(log.handlers):
            log.removeHandler(handler)
            handler.close()


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Empty data directory."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def config(temp_data_dir: Path) -> Config:
    """Configuration pointing at the temporary data directory."""
    config = Config()
    config.data.directory = temp_data_dir
    config.position.latitude, config.position.longitude = LONDON
    return config


@pytest.fixture
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def gateway(blobs: MemoryBlobStore) -> PersistenceGateway:
    return PersistenceGateway(blobs)


@pytest.fixture
def alerts() -> list[str]:
    return []


@pytest.fixture
def make_controller(
    gateway: PersistenceGateway,
    alerts: list[str],
) -> Callable[..., InteractionController]:
    """Factory for controllers wired to in-process sinks."""

    def factory(position_source: object | None = None) -> InteractionController:
        return InteractionController(
            gateway=gateway,
            map_sink=MapView(),
            list_sink=ActivityList(),
            form=FormState(),
            position_source=position_source or FixedPositionSource(LONDON),
            alert=alerts.append,
            clock=lambda: FIXED_NOW,
        )

    return factory


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cli_data_dir(tmp_path: Path) -> Path:
    """Data directory used by CLI invocations."""
    return tmp_path / "cli-data"


@pytest.fixture
def cli_env(tmp_path: Path, cli_data_dir: Path) -> dict[str, str]:
    """Environment isolating CLI runs from the user's config."""
    return {
        "MAPTRACK_CONFIG": str(tmp_path / "missing-config.toml"),
        "MAPTRACK_DATA_DIR": str(cli_data_dir),
        "MAPTRACK_LATITUDE": str(LONDON[0]),
        "MAPTRACK_LONGITUDE": str(LONDON[1]),
    }


@pytest.fixture
def london() -> Coordinates:
    return LONDON


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def deferred_position() -> DeferredPositionSource:
    return DeferredPositionSource()
