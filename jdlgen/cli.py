"""Command-line interface.

Usage::

    jdlgen import-jdl blog.jdl
    jdlgen import-jdl apps.json --skip-install --no-interactive
    jdlgen import-jdl --inline '{"exportedEntities": [...]}'
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from jdlgen import __version__
from jdlgen.config import Config, ImportOptions
from jdlgen.processor import ImportJDLError, import_jdl
from jdlgen.utils import configure_logging, print_error

logger = logging.getLogger(__name__)

# CLI flag -> help text; all are simple on/off switches forwarded as options.
_SWITCHES: dict[str, str] = {
    "force": "Overwrite existing files without asking",
    "skip_install": "Do not install dependencies after generation",
    "skip_client": "Skip client-side generation",
    "json_only": "Only write the entity JSON files, do not generate code",
    "ignore_application": "Do not generate applications described in the JDL",
    "ignore_deployments": "Do not generate deployments described in the JDL",
    "no_insight": "Do not report usage",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jdlgen",
        description="Import JDL models and generate applications, entities and deployments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  jdlgen import-jdl blog.jdl\n"
            "  jdlgen import-jdl apps.jdl deployments.jdl --skip-install\n"
            "  jdlgen import-jdl --inline 'entity Post { title String }'\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser(
        "import-jdl", help="Create entities, applications and deployments from JDL"
    )
    import_parser.add_argument("jdl_files", nargs="*", metavar="FILE", help="JDL files to import")
    import_parser.add_argument("--inline", default=None, help="JDL content passed inline")
    import_parser.add_argument(
        "--interactive",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Generate one unit at a time (default: on for existing projects)",
    )
    for name, help_text in _SWITCHES.items():
        import_parser.add_argument(
            f"--{name.replace('_', '-')}", dest=name, action="store_true", default=None, help=help_text
        )
    import_parser.add_argument("--db", default=None, help="Database to use when the project has none")
    import_parser.add_argument("--creation-timestamp", default=None, help="Entity creation timestamp")
    import_parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``jdlgen``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = Config.from_env()
    configure_logging(logging.DEBUG if args.debug else config.log_level)

    if not args.jdl_files and not args.inline:
        parser.error("import-jdl requires at least one FILE or --inline content")

    options = ImportOptions(
        interactive=args.interactive,
        inline=args.inline,
        db=args.db,
        creation_timestamp=args.creation_timestamp,
        **{name: getattr(args, name) for name in _SWITCHES},
    )

    try:
        summary = asyncio.run(import_jdl(args.jdl_files, options, config))
    except ImportJDLError as exc:
        print_error(str(exc))
        sys.exit(1)

    if summary.exit_code:
        sys.exit(summary.exit_code)


if __name__ == "__main__":
    main()
