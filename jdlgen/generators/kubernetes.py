"""Kubernetes deployment generator.

Renders ``kubectl-apply.sh``: the ``kubectl apply`` commands for a deployment
in dependency order (namespace, registry, applications, message broker,
monitoring), waiting for the Prometheus operator's custom resource
definition before applying resources that depend on it.

The deployment settings are read from the ``.yo-rc.json`` written into the
working directory by the import processor.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from jdlgen.config import load_yo_rc
from jdlgen.generators.environment import BaseGenerator
from jdlgen.generators.renderer import TemplateRenderer
from jdlgen.runner import GeneratorError

logger = logging.getLogger(__name__)

APPLY_TEMPLATE = "kubernetes/apply.sh.j2"
APPLY_SCRIPT = "kubectl-apply.sh"


class KubernetesGenerator(BaseGenerator):
    """Generates the ordered apply script for a Kubernetes deployment."""

    renderer = TemplateRenderer()

    async def run(self) -> Path:
        settings = self.load_settings()
        context = self.build_context(settings, self.load_app_configs(settings))
        script = await self.renderer.render_to_file(
            APPLY_TEMPLATE, self.cwd / APPLY_SCRIPT, context, executable=True
        )
        logger.info(f"Kubernetes apply script written to {script}")
        return script

    def load_settings(self) -> dict[str, Any]:
        """Deployment settings from ``<cwd>/.yo-rc.json``.

        Raises:
            GeneratorError: If the file is missing, unreadable or has no
                namespaced settings.
        """
        path = self.config.yo_rc_path(self.cwd)
        if not path.exists():
            raise GeneratorError(f"No deployment configuration found at {path}")
        try:
            settings = load_yo_rc(path).get(self.config.generator_name)
        except (OSError, json.JSONDecodeError) as exc:
            raise GeneratorError(f"Cannot read deployment configuration {path}: {exc}") from exc
        if not isinstance(settings, dict):
            raise GeneratorError(f"{path} has no '{self.config.generator_name}' settings")
        return settings

    def load_app_configs(self, settings: dict[str, Any]) -> list[dict[str, Any]]:
        """Configuration of every application listed in ``appsFolders``.

        An application whose ``.yo-rc.json`` cannot be found, or that has no
        ``baseName``, is represented by its folder name.
        """
        apps_root = self.cwd / settings.get("directoryPath", "../")
        app_configs: list[dict[str, Any]] = []
        for folder in settings.get("appsFolders", []):
            yo_rc = self.config.yo_rc_path(apps_root / folder)
            app_config: dict[str, Any] = {}
            if yo_rc.exists():
                app_config = dict(load_yo_rc(yo_rc).get(self.config.generator_name) or {})
            else:
                logger.warning(f"No .yo-rc.json for application folder {folder}")
            app_config["baseName"] = app_config.get("baseName") or folder
            app_configs.append(app_config)
        return app_configs

    def build_context(
        self, settings: dict[str, Any], app_configs: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Template context for the apply script."""
        istio = settings.get("istioSupportOpt")
        if istio is None:
            istio = "ai" if settings.get("istio") is True else "no"

        use_kafka = bool(settings.get("useKafka")) or any(
            app.get("messageBroker") == "kafka" for app in app_configs
        )

        return {
            "directory_path": self.options.get("directory_path", ""),
            "kubernetes_namespace": settings.get("kubernetesNamespace") or "default",
            "istio": istio,
            "service_discovery_type": settings.get("serviceDiscoveryType", "eureka"),
            "app_configs": app_configs,
            "use_kafka": use_kafka,
            "monitoring": settings.get("monitoring", "no"),
            "crd_poll_interval": int(self.options.get("crd_poll_interval", 5)),
        }
