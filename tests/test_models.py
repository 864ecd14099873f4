"""Unit tests for the import state models (jdlgen.models)."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from jdlgen.models import ApplicationWithEntities, Deployment, Entity, ImportState


class TestEntity:
    @pytest.mark.unit
    def test_extra_fields_preserved(self, entity_data):
        data = entity_data("Post", ["blog"], dto="mapstruct")
        entity = Entity.model_validate(data)
        assert entity.to_json_data() == data
        assert list(entity.to_json_data()) == list(data)

    @pytest.mark.unit
    def test_applications_default_not_serialised(self):
        entity = Entity.model_validate({"name": "Tag"})
        assert entity.applications == []
        assert entity.to_json_data() == {"name": "Tag"}

    @pytest.mark.unit
    def test_name_required(self):
        with pytest.raises(ValidationError):
            Entity.model_validate({"fields": []})
        with pytest.raises(ValidationError):
            Entity.model_validate({"name": ""})


class TestDeployment:
    @pytest.mark.unit
    def test_namespace_alias(self):
        deployment = Deployment.model_validate(
            {"generator-jhipster": {"deploymentType": "kubernetes"}}
        )
        assert deployment.deployment_type == "kubernetes"
        assert deployment.to_json_data() == {
            "generator-jhipster": {"deploymentType": "kubernetes"}
        }

    @pytest.mark.unit
    def test_custom_namespace(self):
        deployment = Deployment.model_validate(
            {"generator-jhipster": {"deploymentType": "kubernetes"}, "version": 2}
        )
        assert deployment.to_json_data("generator-custom") == {
            "generator-custom": {"deploymentType": "kubernetes"},
            "version": 2,
        }

    @pytest.mark.unit
    def test_missing_type(self):
        assert Deployment().deployment_type is None


class TestImportState:
    @pytest.mark.unit
    def test_camel_case_aliases(self, two_app_state):
        assert len(two_app_state.exported_entities) == 2
        assert len(two_app_state.exported_applications) == 2
        assert set(two_app_state.exported_applications_with_entities) == {"store", "invoice"}

    @pytest.mark.unit
    def test_application_count_prefers_grouped_form(self):
        state = ImportState.model_validate({
            "exportedApplications": [{"baseName": "a"}, {"baseName": "b"}],
            "exportedApplicationsWithEntities": {"a": {"config": {"baseName": "a"}}},
        })
        assert state.application_count == 1

    @pytest.mark.unit
    def test_application_count_falls_back_to_list(self):
        state = ImportState.model_validate({"exportedApplications": [{"baseName": "a"}]})
        assert state.application_count == 1
        assert ImportState().application_count == 0

    @pytest.mark.unit
    def test_entity_names_distinct_in_order(self):
        state = ImportState.model_validate({
            "exportedEntities": [{"name": "B"}, {"name": "A"}, {"name": "B"}],
        })
        assert state.entity_names() == ["B", "A"]

    @pytest.mark.unit
    def test_merge(self, blog_entities_state, deployment_state):
        merged = blog_entities_state.merge(deployment_state)
        assert merged.entity_names() == ["a", "b", "c"]
        assert len(merged.exported_deployments) == 2
        # Inputs untouched.
        assert blog_entities_state.exported_deployments == []

    @pytest.mark.unit
    def test_frozen(self):
        state = ImportState()
        with pytest.raises(ValidationError):
            state.exported_entities = []

    @pytest.mark.unit
    def test_application_base_name(self):
        application = ApplicationWithEntities(config={"baseName": "store"})
        assert application.base_name == "store"
        assert ApplicationWithEntities().base_name is None
