"""jdlgen configuration.

Typed configuration for the import pipeline. Three layers live here:

* ``Config``: tool-level settings (generator namespace, config directory,
  child-process command, parser and telemetry endpoints), built from defaults
  or ``JDLGEN_*`` environment variables.
* ``ImportOptions``: the options record received from the command line and
  forwarded to every generator invocation.
* ``ProjectSettings``: the settings of an existing project, discovered from
  its ``.yo-rc.json`` by the config loader.
"""

from __future__ import annotations

import json
import os
import shlex
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from jdlgen import __version__

GENERATOR_NAME = "generator-jhipster"
CLI_NAME = "jhipster"
JHIPSTER_CONFIG_DIR = ".jhipster"
YO_RC_FILE = ".yo-rc.json"

ANGULAR = "angular"

# Database values that the importer groups under the ``sql`` database type.
SQL_DB_VALUES: frozenset[str] = frozenset(
    {"mysql", "mariadb", "postgresql", "oracle", "mssql"}
)

# Options that only steer the importer and never reach a generator.
IMPORTER_ONLY_OPTIONS: frozenset[str] = frozenset(
    {"inline", "ignore_application", "ignore_deployments", "no_insight"}
)


def db_type_from_value(db: str | None) -> str | None:
    """Map a concrete database value to its database type.

    Examples::

        db_type_from_value("postgresql") -> "sql"
        db_type_from_value("mongodb")    -> "mongodb"
    """
    if db in SQL_DB_VALUES:
        return "sql"
    return db


class Config(BaseModel):
    """Global jdlgen configuration.

    Holds every tuneable parameter of the import pipeline. Instances are
    usually created once by the CLI and handed to ``JDLProcessor``.
    """

    cli_name: str = Field(default=CLI_NAME, description="Generator namespace prefix")
    generator_name: str = Field(default=GENERATOR_NAME, description="Key inside .yo-rc.json")
    config_dir: str = Field(default=JHIPSTER_CONFIG_DIR, description="Entity config directory")
    yo_rc_file: str = Field(default=YO_RC_FILE)
    generator_version: str = Field(default=__version__)

    # Command used to spawn isolated generator processes. The command name and
    # its encoded options are appended.
    generator_command: list[str] = Field(
        default_factory=lambda: [sys.executable, "-m", "jdlgen.run_generator"]
    )
    # Binary that handles generators not shipped with jdlgen (app, entity, ...).
    external_generator: Optional[str] = Field(default=None)
    # Command that turns JDL text files into import-state JSON on stdout.
    parser_command: list[str] = Field(default_factory=list)
    parser_timeout: int = Field(default=120, ge=1, description="Parser timeout in seconds")

    insight_url: Optional[str] = Field(default=None, description="Usage reporting endpoint")
    insight_timeout: float = Field(default=5.0, gt=0)

    log_level: str = Field(default="INFO")

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    def yo_rc_path(self, base: Path) -> Path:
        """Path of the project configuration file inside *base*."""
        return base / self.yo_rc_file

    def entities_path(self, base: Path) -> Path:
        """Directory holding the entity JSON files inside *base*."""
        return base / self.config_dir

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            JDLGEN_GENERATOR_COMMAND, JDLGEN_EXTERNAL_GENERATOR,
            JDLGEN_PARSER_COMMAND, JDLGEN_PARSER_TIMEOUT,
            JDLGEN_INSIGHT_URL, JDLGEN_LOG_LEVEL.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("JDLGEN_GENERATOR_COMMAND"):
            kwargs["generator_command"] = shlex.split(os.environ["JDLGEN_GENERATOR_COMMAND"])
        if os.environ.get("JDLGEN_EXTERNAL_GENERATOR"):
            kwargs["external_generator"] = os.environ["JDLGEN_EXTERNAL_GENERATOR"]
        if os.environ.get("JDLGEN_PARSER_COMMAND"):
            kwargs["parser_command"] = shlex.split(os.environ["JDLGEN_PARSER_COMMAND"])
        if os.environ.get("JDLGEN_PARSER_TIMEOUT"):
            kwargs["parser_timeout"] = int(os.environ["JDLGEN_PARSER_TIMEOUT"])
        if os.environ.get("JDLGEN_INSIGHT_URL"):
            kwargs["insight_url"] = os.environ["JDLGEN_INSIGHT_URL"]
        if os.environ.get("JDLGEN_LOG_LEVEL"):
            kwargs["log_level"] = os.environ["JDLGEN_LOG_LEVEL"].upper()
        return cls(**kwargs)


class ImportOptions(BaseModel):
    """Options of an ``import-jdl`` run.

    Unknown options are kept (``extra="allow"``) and forwarded untouched to
    the generators, so flags meant for the app or entity generators pass
    through the importer.
    """

    model_config = ConfigDict(extra="allow")

    interactive: Optional[bool] = None
    force: Optional[bool] = None
    skip_install: Optional[bool] = None
    skip_client: Optional[bool] = None
    json_only: Optional[bool] = None
    ignore_application: Optional[bool] = None
    ignore_deployments: Optional[bool] = None
    inline: Optional[str] = None
    db: Optional[str] = None
    creation_timestamp: Optional[str] = None
    no_insight: Optional[bool] = None

    def generator_options(self) -> dict[str, Any]:
        """Options forwarded to generators, without unset or importer-only keys."""
        return {
            key: value
            for key, value in self.model_dump(exclude_none=True).items()
            if key not in IMPORTER_ONLY_OPTIONS
        }


class ProjectSettings(BaseModel):
    """Settings of an existing project, read from its ``.yo-rc.json``."""

    model_config = ConfigDict(frozen=True)

    application_type: Optional[str] = None
    base_name: Optional[str] = None
    database_type: Optional[str] = None
    prod_database_type: Optional[str] = None
    dev_database_type: Optional[str] = None
    skip_client: Optional[bool] = None
    client_framework: str = ANGULAR
    client_package_manager: str = "npm"

    @classmethod
    def from_yo_rc(cls, configuration: dict[str, Any], db: str | None = None) -> "ProjectSettings":
        """Derive settings from the namespaced ``.yo-rc.json`` object.

        Args:
            configuration: The ``generator-jhipster`` object.
            db: The ``--db`` option, used where the project has no value.
        """
        return cls(
            application_type=configuration.get("applicationType"),
            base_name=configuration.get("baseName"),
            database_type=configuration.get("databaseType") or db_type_from_value(db),
            prod_database_type=configuration.get("prodDatabaseType") or db,
            dev_database_type=configuration.get("devDatabaseType") or db,
            skip_client=configuration.get("skipClient"),
            client_framework=configuration.get("clientFramework") or ANGULAR,
            client_package_manager=configuration.get("clientPackageManager") or "npm",
        )


def load_yo_rc(path: str | Path) -> dict[str, Any]:
    """Load and parse a ``.yo-rc.json`` file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        return {}
    return data
