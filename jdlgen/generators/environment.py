"""In-process generator host.

``GeneratorEnvironment`` resolves a command such as ``jhipster:kubernetes`` or
``jhipster:entity BlogPost`` to a generator. Generators shipped with jdlgen
run in the current process; anything else is delegated to the configured
external generator binary.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from jdlgen.config import Config
from jdlgen.runner import GeneratorError
from jdlgen.utils import options_to_args, run_command

logger = logging.getLogger(__name__)


class GeneratorNotFoundError(GeneratorError):
    """Raised when no generator handles a command."""


class BaseGenerator(ABC):
    """A generator bound to one working directory.

    Attributes:
        cwd: Directory the generator writes into.
        arguments: Positional arguments following the command name.
        options: Decoded generator options (snake_case keys).
        config: Global jdlgen configuration.
    """

    def __init__(
        self,
        cwd: Path,
        arguments: list[str],
        options: dict[str, Any],
        config: Config,
    ) -> None:
        self.cwd = cwd
        self.arguments = arguments
        self.options = options
        self.config = config

    @abstractmethod
    async def run(self) -> Any:
        """Generate the files."""


def split_command(command: str) -> tuple[str, str, list[str]]:
    """Split ``"<namespace>:<sub> [args]"`` into its parts.

    Examples::

        split_command("jhipster:entity BlogPost") -> ("jhipster", "entity", ["BlogPost"])
        split_command("kubernetes")               -> ("", "kubernetes", [])
    """
    head, *arguments = command.split()
    namespace, _, sub = head.rpartition(":")
    return namespace, sub, arguments


class GeneratorEnvironment:
    """Registry and dispatcher for generator commands."""

    def __init__(
        self,
        config: Config | None = None,
        generators: dict[str, type[BaseGenerator]] | None = None,
    ) -> None:
        self.config = config or Config()
        self.generators: dict[str, type[BaseGenerator]] = dict(generators or {})

    async def run(
        self, command: str, options: dict[str, Any], cwd: Path | None = None
    ) -> None:
        """Run *command* in *cwd* (defaults to the current directory).

        Raises:
            GeneratorNotFoundError: No built-in generator and no external
                generator configured.
            GeneratorError: The external generator exited non-zero; its status
                is kept in ``exit_code``.
        """
        workdir = Path(cwd) if cwd is not None else Path.cwd()
        _, sub, arguments = split_command(command)

        generator_cls = self.generators.get(sub)
        if generator_cls is not None:
            logger.debug(f"Running built-in generator {sub} in {workdir}")
            generator = generator_cls(workdir, arguments, options, self.config)
            await generator.run()
            return

        if not self.config.external_generator:
            raise GeneratorNotFoundError(
                f"No generator found for '{command}'. "
                "Set JDLGEN_EXTERNAL_GENERATOR to delegate it to an external generator."
            )

        cmd = [self.config.external_generator, sub, *arguments, *options_to_args(options)]
        logger.debug(f"Delegating {command} to {self.config.external_generator}")
        try:
            returncode, _, _ = await run_command(cmd, cwd=workdir, capture=False)
        except FileNotFoundError as exc:
            raise GeneratorError(
                f"External generator not found: '{self.config.external_generator}'"
            ) from exc
        if returncode != 0:
            raise GeneratorError(
                f"Generator {command} exited with code {returncode}", exit_code=returncode
            )
