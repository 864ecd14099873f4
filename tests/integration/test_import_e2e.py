"""Integration tests for the import-then-generate pipeline.

These tests run ``import_jdl`` with the real ``SubprocessRunner``: every
deployment is generated by a child ``python -m jdlgen.run_generator``
process started in its own folder.

No external services or JHipster installation are required.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from jdlgen.config import Config, ImportOptions
from jdlgen.processor import import_jdl


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _write_model(path: Path) -> Path:
    model = {
        "exportedDeployments": [
            {
                "generator-jhipster": {
                    "deploymentType": "kubernetes",
                    "appsFolders": ["store", "invoice"],
                    "directoryPath": "../",
                    "kubernetesNamespace": "shop",
                    "monitoring": "prometheus",
                }
            }
        ]
    }
    path.write_text(json.dumps(model))
    return path


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


@pytest.mark.integration
@pytest.mark.asyncio
async def test_kubernetes_deployment_in_child_process(tmp_path: Path):
    model = _write_model(tmp_path / "deployments.json")
    project = tmp_path / "project"
    for app, broker in (("store", "no"), ("invoice", "kafka")):
        app_dir = project / app
        app_dir.mkdir(parents=True)
        (app_dir / ".yo-rc.json").write_text(
            json.dumps({"generator-jhipster": {"baseName": app, "messageBroker": broker}})
        )

    summary = await import_jdl(
        [str(model)],
        ImportOptions(no_insight=True),
        Config(),
        pwd=project,
    )

    assert summary.exit_code == 0
    assert [result.command for result in summary.results] == ["jhipster:kubernetes"]

    script = project / "kubernetes" / "kubectl-apply.sh"
    assert script.exists()
    assert os.access(script, os.X_OK)
    content = script.read_text()
    assert "kubectl apply -f k8s/namespace.yml" in content
    assert content.index("k8s/store/") < content.index("k8s/invoice/")
    assert "kubectl apply -f k8s/messagebroker/" in content
    assert "prometheuses.monitoring.coreos.com" in content


@pytest.mark.integration
@pytest.mark.asyncio
async def test_unknown_generator_is_soft_failure(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("JDLGEN_EXTERNAL_GENERATOR", raising=False)
    model = tmp_path / "model.json"
    model.write_text(json.dumps({
        "exportedDeployments": [{"generator-jhipster": {"deploymentType": "openshift"}}]
    }))
    project = tmp_path / "project"
    project.mkdir()

    summary = await import_jdl([str(model)], ImportOptions(no_insight=True), pwd=project)

    assert summary.exit_code == 1
    assert (project / "openshift" / ".yo-rc.json").exists()
