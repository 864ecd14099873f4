"""Generators that run inside jdlgen.

Quick usage::

    from jdlgen.generators import create_environment

    env = create_environment()
    await env.run("jhipster:kubernetes", {}, cwd=Path("kubernetes"))
"""

from jdlgen.config import Config
from jdlgen.generators.environment import (
    BaseGenerator,
    GeneratorEnvironment,
    GeneratorNotFoundError,
    split_command,
)
from jdlgen.generators.kubernetes import KubernetesGenerator
from jdlgen.generators.renderer import TemplateRenderer

BUILTIN_GENERATORS: dict[str, type[BaseGenerator]] = {
    "kubernetes": KubernetesGenerator,
}


def create_environment(config: Config | None = None) -> GeneratorEnvironment:
    """A ``GeneratorEnvironment`` with the built-in generators registered."""
    return GeneratorEnvironment(config, BUILTIN_GENERATORS)


__all__ = [
    "BUILTIN_GENERATORS",
    "BaseGenerator",
    "GeneratorEnvironment",
    "GeneratorNotFoundError",
    "KubernetesGenerator",
    "TemplateRenderer",
    "create_environment",
    "split_command",
]
