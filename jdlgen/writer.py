"""Writers for the persisted project configuration.

Layout produced for a project rooted at ``base`` with the default ``Config``::

    base/.yo-rc.json                  {"generator-jhipster": {...}}
    base/.jhipster/<Entity>.json      one file per entity

File and directory names come from ``Config.yo_rc_file`` and
``Config.config_dir``. Every file is 2-space indented JSON with a trailing
newline, so writing the same input twice gives identical bytes.
"""

from __future__ import annotations

from pathlib import Path

from jdlgen.config import Config
from jdlgen.models import ApplicationWithEntities, Deployment, Entity
from jdlgen.utils import ensure_dir, upper_first, write_json_file


def write_entity_config(
    entity: Entity,
    base_path: str | Path,
    config: Config | None = None,
) -> Path:
    """Write ``<base>/<config_dir>/<Name>.json`` and return its path."""
    config = config or Config()
    entities_path = ensure_dir(config.entities_path(Path(base_path)))
    file_path = entities_path / f"{upper_first(entity.name)}.json"
    return write_json_file(entity.to_json_data(), file_path)


def write_application_config(
    application: ApplicationWithEntities,
    base_path: str | Path,
    config: Config | None = None,
) -> list[Path]:
    """Write an application's project file followed by its entity files.

    Returns:
        Every written path, the project file first.
    """
    config = config or Config()
    base = ensure_dir(base_path)
    written = [
        write_json_file({config.generator_name: application.config}, config.yo_rc_path(base))
    ]
    for entity in application.entities:
        written.append(write_entity_config(entity, base, config))
    return written


def write_deployment_config(
    deployment: Deployment,
    base_path: str | Path,
    config: Config | None = None,
) -> Path:
    """Write a deployment's namespaced settings to the project file in *base*."""
    config = config or Config()
    base = ensure_dir(base_path)
    return write_json_file(
        deployment.to_json_data(config.generator_name), config.yo_rc_path(base)
    )
