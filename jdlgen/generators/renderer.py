"""Jinja2 rendering for the built-in generators.

Templates live under ``jdlgen/generators/templates/`` and are addressed by
their path relative to that directory, e.g. ``"kubernetes/apply.sh.j2"``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

TEMPLATES_ROOT = Path(__file__).parent / "templates"


class TemplateRenderer:
    """Renders generator templates from a context dictionary.

    Undefined variables raise ``jinja2.UndefinedError`` so a missing context
    key fails the generator instead of producing a broken script.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        self.template_dir = Path(template_dir) if template_dir is not None else TEMPLATES_ROOT
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        return self.env.get_template(template_path).render(**context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
        *,
        executable: bool = False,
    ) -> Path:
        """Render *template_path* into *output_path*.

        Args:
            template_path: Template path relative to the template directory.
            output_path: Destination file; parent directories are created.
            context: Template variables.
            executable: Also set the execute bits (shell scripts).

        Returns:
            The written path.
        """
        content = self.render(template_path, context)
        target = Path(output_path)
        await asyncio.to_thread(_write_output, target, content, executable)
        return target


def _write_output(path: Path, content: str, executable: bool) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if executable:
        path.chmod(0o755)
