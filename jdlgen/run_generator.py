"""Entry point of an isolated generator process.

``SubprocessRunner`` starts ``python -m jdlgen.run_generator <command>
[args] [--options]`` in the target directory. The options are decoded, the
command runs through the generator environment and the process exits with
0 on success, the failing generator's status for a ``GeneratorError`` and 1
for anything else.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from jdlgen.config import Config
from jdlgen.generators import create_environment
from jdlgen.runner import GeneratorError
from jdlgen.utils import args_to_options, configure_logging, print_error

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Run one generator command and return the exit status."""
    positionals, options = args_to_options(list(sys.argv[1:] if argv is None else argv))
    if not positionals:
        print_error("Usage: python -m jdlgen.run_generator <namespace>:<generator> [args] [--options]")
        return 2

    config = Config.from_env()
    configure_logging(config.log_level)
    command = " ".join(positionals)

    try:
        asyncio.run(create_environment(config).run(command, options))
    except Exception as exc:
        logger.debug(f"Generator {command} failed", exc_info=exc)
        print_error(f"ERROR! {exc}")
        return exc.exit_code if isinstance(exc, GeneratorError) else 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
