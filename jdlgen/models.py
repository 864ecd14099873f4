"""Pydantic v2 models for the JDL import state.

The importer hands back an ``ImportState``: the entities, applications and
deployments described by the model, plus each application's entities grouped
under its base name. Field aliases accept the camelCase names used on the
wire (``exportedEntities``, ``exportedApplicationsWithEntities``, ...).
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ModelWrapValidatorHandler,
    PrivateAttr,
    model_validator,
)

from jdlgen.config import GENERATOR_NAME


class Entity(BaseModel):
    """An entity definition.

    Only ``name`` and ``applications`` are interpreted; every other field is
    kept as-is and serialised verbatim to the entity's JSON file, in the key
    order it was received.
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1, description="Entity name, e.g. 'BlogPost'")
    applications: list[str] = Field(
        default_factory=list, description="Base names of the owning applications"
    )

    _key_order: list[str] = PrivateAttr(default_factory=list)

    @model_validator(mode="wrap")
    @classmethod
    def _remember_key_order(
        cls, data: Any, handler: ModelWrapValidatorHandler["Entity"]
    ) -> "Entity":
        entity = handler(data)
        if isinstance(data, dict):
            entity._key_order = list(data)
        return entity

    def to_json_data(self) -> dict[str, Any]:
        """The entity as it was received, for writing to disk."""
        data = self.model_dump(mode="json", exclude_unset=True)
        ordered = {key: data[key] for key in self._key_order if key in data}
        return {**ordered, **data}


class ApplicationWithEntities(BaseModel):
    """An application's configuration together with its entities."""

    config: dict[str, Any] = Field(default_factory=dict)
    entities: list[Entity] = Field(default_factory=list)

    @property
    def base_name(self) -> Optional[str]:
        return self.config.get("baseName")


class Deployment(BaseModel):
    """A deployment definition keyed by the generator namespace.

    ``{"generator-jhipster": {"deploymentType": "kubernetes", ...}}``
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    settings: dict[str, Any] = Field(default_factory=dict, alias=GENERATOR_NAME)

    @property
    def deployment_type(self) -> Optional[str]:
        return self.settings.get("deploymentType")

    def to_json_data(self, namespace: str = GENERATOR_NAME) -> dict[str, Any]:
        """Settings under *namespace*, followed by any other top-level keys."""
        return {namespace: self.settings, **(self.model_extra or {})}


class ImportState(BaseModel):
    """Result of a JDL import. Immutable once built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    exported_entities: list[Entity] = Field(default_factory=list, alias="exportedEntities")
    exported_applications: list[dict[str, Any]] = Field(
        default_factory=list, alias="exportedApplications"
    )
    exported_applications_with_entities: dict[str, ApplicationWithEntities] = Field(
        default_factory=dict, alias="exportedApplicationsWithEntities"
    )
    exported_deployments: list[Deployment] = Field(
        default_factory=list, alias="exportedDeployments"
    )

    @property
    def application_count(self) -> int:
        """Number of imported applications.

        Import states that only carry the grouped form
        (``exportedApplicationsWithEntities``) are counted from it.
        """
        return len(self.exported_applications_with_entities) or len(self.exported_applications)

    def entity_names(self) -> list[str]:
        """Distinct entity names in import order."""
        return list(dict.fromkeys(entity.name for entity in self.exported_entities))

    def merge(self, other: "ImportState") -> "ImportState":
        """Combine two import states, *other* appended after this one."""
        return ImportState(
            exported_entities=[*self.exported_entities, *other.exported_entities],
            exported_applications=[
                *self.exported_applications,
                *other.exported_applications,
            ],
            exported_applications_with_entities={
                **self.exported_applications_with_entities,
                **other.exported_applications_with_entities,
            },
            exported_deployments=[
                *self.exported_deployments,
                *other.exported_deployments,
            ],
        )
