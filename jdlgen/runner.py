"""Generator invocation.

A generation step is a command such as ``jhipster:app`` or
``jhipster:entity BlogPost`` plus an options record. It runs either

* isolated, in a child process bound to the target directory
  (``SubprocessRunner``), so several applications never share generator
  state, or
* in the current process (``InProcessRunner``).

Neither raises on a failed generation: a non-zero exit is a soft failure
reported through the returned ``InvocationResult``, because the
generator has already reported its own errors.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol

from jdlgen.utils import options_to_args, print_error

logger = logging.getLogger(__name__)


@dataclass
class InvocationResult:
    """Outcome of a single generator invocation."""

    command: str
    cwd: Path
    exit_code: int
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class GeneratorError(Exception):
    """Raised when a generator cannot be started or fails.

    ``exit_code`` is the status an isolated generator process exits with.
    """

    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class GenerationEnvironment(Protocol):
    """In-process generator host (see ``jdlgen.generators``)."""

    async def run(self, command: str, options: dict[str, Any], cwd: Path | None = None) -> None: ...


class GeneratorRunner(ABC):
    """Runs generator commands; a failed generation is returned, never raised."""

    @abstractmethod
    async def run(
        self, command: str, cwd: str | Path, options: dict[str, Any] | None = None
    ) -> InvocationResult:
        """Run *command* for *cwd* with *options*."""


class SubprocessRunner(GeneratorRunner):
    """Runs each command in an isolated child process.

    The child is ``[*base_command, *command.split(), *encoded_options]`` with
    ``cwd`` as working directory; it inherits the parent's stdout/stderr so
    prompts and progress stay visible.
    """

    def __init__(self, base_command: list[str]) -> None:
        self.base_command = list(base_command)

    async def run(
        self, command: str, cwd: str | Path, options: dict[str, Any] | None = None
    ) -> InvocationResult:
        options = {**(options or {}), "from_cli": True}
        workdir = Path(cwd)
        args = [*command.split(), *options_to_args(options)]
        logger.debug(f"Child process will be triggered for {command} with cwd: {workdir}")

        start_time = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *self.base_command, *args, cwd=str(workdir)
            )
        except FileNotFoundError as exc:
            raise GeneratorError(
                f"Generator command not found: '{self.base_command[0]}'"
            ) from exc
        except PermissionError as exc:
            raise GeneratorError(
                f"Permission denied executing: '{self.base_command[0]}'"
            ) from exc

        code = await process.wait()
        elapsed = time.monotonic() - start_time
        logger.debug(f"Process {args} exited with code {code}")
        logger.info(f"Generator {command} child process exited with code {code}")
        return InvocationResult(
            command=command, cwd=workdir, exit_code=code, duration_seconds=elapsed
        )


class InProcessRunner(GeneratorRunner):
    """Runs commands directly through a generation environment.

    Exceptions raised by the generator are reported and absorbed. The result
    carries the exit code of a ``GeneratorError``, or 1 for anything else.
    """

    def __init__(self, environment: GenerationEnvironment) -> None:
        self.environment = environment

    async def run(
        self, command: str, cwd: str | Path, options: dict[str, Any] | None = None
    ) -> InvocationResult:
        workdir = Path(cwd)
        start_time = time.monotonic()
        code = 0
        try:
            await self.environment.run(command, dict(options or {}), cwd=workdir)
        except Exception as exc:
            logger.debug(f"Generator {command} failed", exc_info=exc)
            print_error(f"ERROR! {exc}")
            code = exc.exit_code if isinstance(exc, GeneratorError) else 1
        return InvocationResult(
            command=command,
            cwd=workdir,
            exit_code=code,
            duration_seconds=time.monotonic() - start_time,
        )


class CallableRunner(GeneratorRunner):
    """Adapts a plain coroutine function to the runner interface.

    Mostly useful to observe or fake generator invocations::

        calls = []
        async def fake(command, cwd, options):
            calls.append((command, cwd, options))
            return 0
        runner = CallableRunner(fake)
    """

    def __init__(self, func: Callable[[str, Path, dict[str, Any]], Awaitable[int | None]]) -> None:
        self.func = func

    async def run(
        self, command: str, cwd: str | Path, options: dict[str, Any] | None = None
    ) -> InvocationResult:
        workdir = Path(cwd)
        code = await self.func(command, workdir, dict(options or {}))
        return InvocationResult(command=command, cwd=workdir, exit_code=code or 0)
