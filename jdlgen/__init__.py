"""jdlgen: JDL import and generator orchestration.

Turns a parsed JDL model (applications, entities, deployments) into on-disk
project configuration and drives the generators that produce the code.

Quick usage::

    import asyncio
    from jdlgen import ImportOptions, import_jdl

    asyncio.run(import_jdl(["blog.jdl"], ImportOptions(skip_install=True)))
"""

__version__ = "0.4.0"

from jdlgen.config import Config, ImportOptions, ProjectSettings
from jdlgen.processor import ImportJDLError, JDLProcessor, Schedule, import_jdl

__all__ = [
    "__version__",
    "Config",
    "ImportOptions",
    "ProjectSettings",
    "JDLProcessor",
    "Schedule",
    "ImportJDLError",
    "import_jdl",
]
