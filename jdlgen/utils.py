"""Shared utility functions for jdlgen.

Provides the Rich console and logging setup, coloured status printers, JSON
file writing, generator option encoding, naming helpers and async command
execution.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

console = Console()

PROJECT_PREFIX = "jdlgen"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def configure_logging(level: int | str = logging.INFO) -> RichHandler:
    """Attach a Rich console handler to the ``jdlgen`` logger hierarchy.

    Calling it again replaces the previously installed handler, so the CLI
    can raise verbosity after parsing ``--debug``.

    Args:
        level: Logging level name or number.

    Returns:
        The installed handler.
    """
    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        markup=True,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger(PROJECT_PREFIX)
    for existing in list(root.handlers):
        if isinstance(existing, RichHandler):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False
    return handler


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_success(message: str = "Congratulations, JHipster execution is complete!") -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def upper_first(value: str) -> str:
    """Upper-case the first character only: ``"blogPost"`` -> ``"BlogPost"``."""
    return value[:1].upper() + value[1:]


def kebab_case(value: str) -> str:
    """Convert ``skip_install`` or ``skipInstall`` to ``skip-install``."""
    s1 = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", value)
    return re.sub(r"[_\s]+", "-", s1).lower()


def snake_case(value: str) -> str:
    """Convert ``skip-install`` or ``skipInstall`` to ``skip_install``."""
    return kebab_case(value).replace("-", "_")


def pluralize(word: str, count: int) -> str:
    """Pluralize the handful of nouns used in progress messages.

    Examples::

        pluralize("entity", 1)      -> "entity"
        pluralize("entity", 3)      -> "entities"
        pluralize("deployment", 2)  -> "deployments"
        pluralize("process", 2)     -> "processes"
    """
    if count == 1:
        return word
    if word.endswith("y") and word[-2:-1] not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "ch", "sh")):
        return word + "es"
    return word + "s"


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def to_json_text(data: Any) -> str:
    """Serialise *data* as 2-space indented JSON followed by a newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_json_file(data: Any, path: str | Path) -> Path:
    """Write *data* as pretty JSON, creating parent directories.

    Re-writing identical data produces byte-identical files.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(to_json_text(data), encoding="utf-8")
    return file_path


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist."""
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


# ---------------------------------------------------------------------------
# Generator option encoding
# ---------------------------------------------------------------------------


def options_to_args(options: dict[str, Any]) -> list[str]:
    """Encode an options record as command-line arguments.

    Keys become kebab-case flags. ``True`` gives ``--flag``, ``False`` gives
    ``--no-flag``, ``None`` is dropped, lists repeat the flag once per item and
    any other value is passed as ``--flag value``.

    Examples::

        options_to_args({"skip_install": True, "db": "mysql", "force": None})
        -> ["--skip-install", "--db", "mysql"]
    """
    args: list[str] = []
    for key, value in options.items():
        if value is None:
            continue
        flag = f"--{kebab_case(key)}"
        if value is True:
            args.append(flag)
        elif value is False:
            args.append(f"--no-{kebab_case(key)}")
        elif isinstance(value, (list, tuple)):
            for item in value:
                args.extend([flag, str(item)])
        else:
            args.extend([flag, str(value)])
    return args


def args_to_options(args: list[str]) -> tuple[list[str], dict[str, Any]]:
    """Decode arguments produced by :func:`options_to_args`.

    Returns:
        A ``(positionals, options)`` tuple. Repeated flags collect into lists
        and option names come back in snake_case.
    """
    positionals: list[str] = []
    options: dict[str, Any] = {}
    index = 0
    while index < len(args):
        arg = args[index]
        index += 1
        if not arg.startswith("--"):
            positionals.append(arg)
            continue

        name = arg[2:]
        if "=" in name:
            name, value = name.split("=", 1)
            _add_option(options, snake_case(name), value)
        elif name.startswith("no-"):
            options[snake_case(name[3:])] = False
        elif index < len(args) and not args[index].startswith("--"):
            _add_option(options, snake_case(name), args[index])
            index += 1
        else:
            options[snake_case(name)] = True
    return positionals, options


def _add_option(options: dict[str, Any], key: str, value: str) -> None:
    if key not in options:
        options[key] = value
    elif isinstance(options[key], list):
        options[key].append(value)
    else:
        options[key] = [options[key], value]


# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int | None = None,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously.

    Args:
        cmd: Program and arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
            ``None`` waits forever.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=stdout_pipe,
        stderr=stderr_pipe,
        cwd=str(cwd) if cwd else None,
        env=merged_env,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)
