"""Shared pytest fixtures for the jdlgen test suite.

Provides reusable fixtures for:
- Sample import states (single app, two apps, entities-only, deployments)
- Recording generator runners that stand in for child processes
- A processor factory wired to an in-memory importer
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from jdlgen.config import Config, ImportOptions
from jdlgen.importer import ImporterConfiguration
from jdlgen.models import ImportState
from jdlgen.processor import JDLProcessor
from jdlgen.runner import CallableRunner


# ---------------------------------------------------------------------------
# Import states
# ---------------------------------------------------------------------------


def _entity(name: str, applications: list[str] | None = None, **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": name,
        "fields": [{"fieldName": "title", "fieldType": "String"}],
        "relationships": [],
        "changelogDate": "20200101000000",
    }
    if applications is not None:
        data["applications"] = applications
    data.update(extra)
    return data


@pytest.fixture
def entity_data() -> Callable[..., dict[str, Any]]:
    """Factory building entity dicts as the importer emits them."""
    return _entity


@pytest.fixture
def two_app_state() -> ImportState:
    """Two applications with one entity each."""
    store = _entity("Product", ["store"])
    invoice = _entity("Invoice", ["invoice"])
    return ImportState.model_validate({
        "exportedEntities": [store, invoice],
        "exportedApplications": [
            {"baseName": "store", "applicationType": "gateway"},
            {"baseName": "invoice", "applicationType": "microservice"},
        ],
        "exportedApplicationsWithEntities": {
            "store": {
                "config": {"baseName": "store", "applicationType": "gateway"},
                "entities": [store],
            },
            "invoice": {
                "config": {"baseName": "invoice", "applicationType": "microservice"},
                "entities": [invoice],
            },
        },
        "exportedDeployments": [],
    })


@pytest.fixture
def single_app_state() -> ImportState:
    """One monolith with two entities."""
    post = _entity("Post", ["blog"])
    tag = _entity("Tag", ["blog"])
    return ImportState.model_validate({
        "exportedEntities": [post, tag],
        "exportedApplications": [{"baseName": "blog"}],
        "exportedApplicationsWithEntities": {
            "blog": {"config": {"baseName": "blog", "databaseType": "sql"}, "entities": [post, tag]},
        },
    })


@pytest.fixture
def blog_entities_state() -> ImportState:
    """No applications; A owned by nobody, B and C owned by ``blog``."""
    return ImportState.model_validate({
        "exportedEntities": [
            _entity("a", []),
            _entity("b", ["blog"]),
            _entity("c", ["blog"]),
        ],
    })


@pytest.fixture
def deployment_state() -> ImportState:
    """Two deployments and nothing else."""
    return ImportState.model_validate({
        "exportedDeployments": [
            {"generator-jhipster": {"deploymentType": "kubernetes", "appsFolders": ["store"]}},
            {"generator-jhipster": {"deploymentType": "docker-compose", "appsFolders": ["store"]}},
        ],
    })


# ---------------------------------------------------------------------------
# Runners and importers
# ---------------------------------------------------------------------------


class RecordingRunner(CallableRunner):
    """Runner recording every call; optionally fails for given commands."""

    def __init__(self, exit_codes: dict[str, int] | None = None) -> None:
        self.calls: list[tuple[str, Path, dict[str, Any]]] = []
        self.exit_codes = exit_codes or {}
        super().__init__(self._record_call)

    async def _record_call(self, command: str, cwd: Path, options: dict[str, Any]) -> int:
        self.calls.append((command, cwd, options))
        return self.exit_codes.get(command, 0)

    @property
    def commands(self) -> list[str]:
        return [command for command, _, _ in self.calls]


@pytest.fixture
def isolated_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def local_runner() -> RecordingRunner:
    return RecordingRunner()


class StaticImporter:
    """Importer returning a fixed state (or raising a fixed error)."""

    def __init__(self, state: ImportState | None = None, error: Exception | None = None) -> None:
        self.state = state
        self.error = error
        self.configurations: list[ImporterConfiguration] = []

    def factory(
        self, content: str | None, files: list[str], configuration: ImporterConfiguration
    ) -> "StaticImporter":
        self.configurations.append(configuration)
        return self

    async def import_state(self) -> ImportState:
        if self.error is not None:
            raise self.error
        assert self.state is not None
        return self.state


@pytest.fixture
def make_processor(
    tmp_path: Path,
    isolated_runner: RecordingRunner,
    local_runner: RecordingRunner,
) -> Callable[..., JDLProcessor]:
    """Build a ``JDLProcessor`` rooted at ``tmp_path`` with recording runners."""

    def _make(
        state: ImportState | None = None,
        error: Exception | None = None,
        config: Config | None = None,
        **option_values: Any,
    ) -> JDLProcessor:
        importer = StaticImporter(state, error)
        processor = JDLProcessor(
            ["model.jdl"],
            None,
            ImportOptions(**option_values),
            config or Config(),
            pwd=tmp_path,
            isolated_runner=isolated_runner,
            local_runner=local_runner,
            importer_factory=importer.factory,
        )
        processor.test_importer = importer  # type: ignore[attr-defined]
        return processor

    return _make
