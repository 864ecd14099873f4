"""``python -m jdlgen`` entry point."""

from jdlgen.cli import main

main()
