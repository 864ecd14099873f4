"""Unit tests for configuration writers (jdlgen.writer)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from jdlgen.config import Config
from jdlgen.models import ApplicationWithEntities, Deployment, Entity
from jdlgen.writer import write_application_config, write_deployment_config, write_entity_config


class TestWriteEntityConfig:
    @pytest.mark.unit
    def test_path_uses_upper_first_name(self, tmp_path: Path):
        path = write_entity_config(Entity(name="blogPost"), tmp_path)
        assert path == tmp_path / ".jhipster" / "BlogPost.json"
        assert json.loads(path.read_text()) == {"name": "blogPost"}

    @pytest.mark.unit
    def test_custom_config_dir(self, tmp_path: Path):
        path = write_entity_config(Entity(name="Tag"), tmp_path, Config(config_dir=".entities"))
        assert path == tmp_path / ".entities" / "Tag.json"

    @pytest.mark.unit
    def test_overwrites_existing(self, tmp_path: Path, entity_data):
        write_entity_config(Entity.model_validate(entity_data("Tag")), tmp_path)
        path = write_entity_config(Entity(name="Tag"), tmp_path)
        assert json.loads(path.read_text()) == {"name": "Tag"}

    @pytest.mark.unit
    def test_keeps_received_key_order(self, tmp_path: Path):
        entity = Entity.model_validate({
            "name": "Tag",
            "fields": [{"fieldName": "label", "fieldType": "String"}],
            "changelogDate": "20240101000000",
            "applications": ["store"],
        })
        path = write_entity_config(entity, tmp_path)
        assert list(json.loads(path.read_text())) == [
            "name",
            "fields",
            "changelogDate",
            "applications",
        ]


class TestWriteApplicationConfig:
    @pytest.mark.unit
    def test_yo_rc_then_entities(self, tmp_path: Path):
        application = ApplicationWithEntities(
            config={"baseName": "store", "applicationType": "gateway"},
            entities=[Entity(name="Product"), Entity(name="Order")],
        )
        written = write_application_config(application, tmp_path / "store")

        assert written == [
            tmp_path / "store" / ".yo-rc.json",
            tmp_path / "store" / ".jhipster" / "Product.json",
            tmp_path / "store" / ".jhipster" / "Order.json",
        ]
        yo_rc = json.loads(written[0].read_text())
        assert yo_rc == {"generator-jhipster": {"baseName": "store", "applicationType": "gateway"}}

    @pytest.mark.unit
    def test_custom_namespace(self, tmp_path: Path):
        application = ApplicationWithEntities(config={"baseName": "x"})
        written = write_application_config(
            application, tmp_path, Config(generator_name="generator-custom")
        )
        assert "generator-custom" in json.loads(written[0].read_text())

    @pytest.mark.unit
    def test_custom_project_file(self, tmp_path: Path):
        config = Config(yo_rc_file=".custom-rc.json")
        application = ApplicationWithEntities(
            config={"baseName": "x"}, entities=[Entity(name="Tag")]
        )
        written = write_application_config(application, tmp_path, config)
        assert written[0] == config.yo_rc_path(tmp_path)
        assert not (tmp_path / ".yo-rc.json").exists()


class TestWriteDeploymentConfig:
    @pytest.mark.unit
    def test_namespaced_settings(self, tmp_path: Path):
        deployment = Deployment.model_validate(
            {"generator-jhipster": {"deploymentType": "kubernetes", "kubernetesNamespace": "prod"}}
        )
        path = write_deployment_config(deployment, tmp_path / "kubernetes")
        assert path == tmp_path / "kubernetes" / ".yo-rc.json"
        assert path.read_text().endswith("}\n")
        assert json.loads(path.read_text())["generator-jhipster"]["kubernetesNamespace"] == "prod"

    @pytest.mark.unit
    def test_custom_project_file(self, tmp_path: Path):
        config = Config(yo_rc_file=".custom-rc.json", generator_name="generator-custom")
        deployment = Deployment.model_validate(
            {"generator-jhipster": {"deploymentType": "kubernetes"}}
        )
        path = write_deployment_config(deployment, tmp_path, config)
        assert path == tmp_path / ".custom-rc.json"
        assert json.loads(path.read_text()) == {
            "generator-custom": {"deploymentType": "kubernetes"}
        }
