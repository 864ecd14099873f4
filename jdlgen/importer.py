"""JDL importer contract and the two importers jdlgen can drive.

Parsing the JDL grammar is not done here. An importer turns a model into an
``ImportState`` in one of two ways:

* ``JSONStateImporter``: the model is an already-parsed import state
  serialised as JSON (inline or ``.json`` files).
* ``CommandImporter``: the model is JDL text, handed to an external parser
  command that prints the import state as JSON on stdout.

``create_importer_from_content`` / ``create_importer_from_files`` pick the
right one.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from pydantic import BaseModel, Field, ValidationError

from jdlgen.models import ImportState
from jdlgen.utils import run_command

logger = logging.getLogger(__name__)


class ImporterError(Exception):
    """Raised when a model cannot be parsed or validated."""


class ImporterConfiguration(BaseModel):
    """Settings handed to the importer for one run."""

    database_type: Optional[str] = None
    application_type: Optional[str] = None
    application_name: Optional[str] = None
    generator_version: Optional[str] = None
    force_no_filtering: Optional[bool] = None
    creation_timestamp: Optional[str] = None
    skip_file_generation: bool = Field(
        default=True, description="Files are written by the processor, not the importer"
    )


class JDLImporter(Protocol):
    """Anything that produces an ``ImportState``."""

    async def import_state(self) -> ImportState: ...


# ---------------------------------------------------------------------------
# JSON import state
# ---------------------------------------------------------------------------


def parse_import_state(raw: str, source: str = "<inline>") -> ImportState:
    """Validate an import state JSON document.

    Raises:
        ImporterError: If *raw* is not JSON or does not match the model.
    """
    try:
        return ImportState.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ImporterError(f"Invalid import state in {source}: {exc}") from exc


class JSONStateImporter:
    """Reads import states serialised as JSON."""

    def __init__(
        self,
        configuration: ImporterConfiguration,
        content: str | None = None,
        files: list[str] | None = None,
    ) -> None:
        self.configuration = configuration
        self.content = content
        self.files = list(files or [])

    async def import_state(self) -> ImportState:
        if self.content is not None:
            return parse_import_state(self.content)

        state = ImportState()
        for file_name in self.files:
            path = Path(file_name)
            if not path.exists():
                raise ImporterError(f"File not found: {path}")
            state = state.merge(parse_import_state(path.read_text(encoding="utf-8"), str(path)))
        return state


# ---------------------------------------------------------------------------
# External JDL parser
# ---------------------------------------------------------------------------


class CommandImporter:
    """Delegates JDL parsing to an external command.

    The command is called as ``<parser_command> --configuration <json>
    FILE...`` and must print an import state JSON document on stdout.
    """

    def __init__(
        self,
        configuration: ImporterConfiguration,
        parser_command: list[str],
        files: list[str],
        timeout: int = 120,
    ) -> None:
        self.configuration = configuration
        self.parser_command = list(parser_command)
        self.files = list(files)
        self.timeout = timeout

    async def import_state(self) -> ImportState:
        cmd = [
            *self.parser_command,
            "--configuration",
            self.configuration.model_dump_json(exclude_none=True),
            *self.files,
        ]
        logger.debug(f"Running JDL parser: {' '.join(self.parser_command)}")
        try:
            returncode, stdout, stderr = await run_command(cmd, timeout=self.timeout)
        except FileNotFoundError as exc:
            raise ImporterError(
                f"JDL parser not found: '{self.parser_command[0]}'"
            ) from exc

        if returncode != 0:
            raise ImporterError(stderr or f"JDL parser exited with code {returncode}")
        return parse_import_state(stdout, "parser output")


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _looks_like_json(content: str) -> bool:
    try:
        return isinstance(json.loads(content), dict)
    except json.JSONDecodeError:
        return False


def create_importer_from_content(
    content: str,
    configuration: ImporterConfiguration,
    parser_command: list[str] | None = None,
    timeout: int = 120,
) -> JDLImporter:
    """Build an importer for inline model content.

    JSON content is read as an import state; JDL text is written to a
    temporary file and handed to the parser command.
    """
    if _looks_like_json(content):
        return JSONStateImporter(configuration, content=content)
    if not parser_command:
        raise ImporterError(
            "No JDL parser configured; set JDLGEN_PARSER_COMMAND or pass an import state JSON"
        )
    return _InlineCommandImporter(configuration, parser_command, content, timeout)


def create_importer_from_files(
    files: list[str],
    configuration: ImporterConfiguration,
    parser_command: list[str] | None = None,
    timeout: int = 120,
) -> JDLImporter:
    """Build an importer for model files.

    ``.json`` files are read as import states; anything else is JDL and goes
    to the parser command.
    """
    if not files:
        raise ImporterError("No JDL files given")
    if all(Path(name).suffix.lower() == ".json" for name in files):
        return JSONStateImporter(configuration, files=files)
    if not parser_command:
        raise ImporterError(
            "No JDL parser configured; set JDLGEN_PARSER_COMMAND or pass an import state JSON"
        )
    return CommandImporter(configuration, parser_command, files, timeout)


class _InlineCommandImporter(CommandImporter):
    """``CommandImporter`` over inline text, staged in a temporary file."""

    def __init__(
        self,
        configuration: ImporterConfiguration,
        parser_command: list[str],
        content: str,
        timeout: int,
    ) -> None:
        super().__init__(configuration, parser_command, [], timeout)
        self.content = content

    async def import_state(self) -> ImportState:
        with tempfile.TemporaryDirectory(prefix="jdlgen-") as tmp:
            jdl_file = Path(tmp) / "inline.jdl"
            jdl_file.write_text(self.content, encoding="utf-8")
            self.files = [str(jdl_file)]
            return await super().import_state()
