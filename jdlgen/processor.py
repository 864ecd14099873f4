"""JDL import processor.

Drives an ``import-jdl`` run as a linear pipeline:

    get_config -> import_jdl -> send_insight -> generate_applications
               -> generate_entities -> generate_deployments

Each stage returns a value consumed by the next (``ProjectSettings``,
``ImportState``, ``RunContext``); nothing is accumulated on the processor.
Any failure aborts the run. There are no retries.

Scheduling is a policy: interactive runs generate one unit at a time so
prompts never interleave, non-interactive runs launch every unit at once and
wait for all of them.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

from jdlgen.config import Config, ImportOptions, ProjectSettings, load_yo_rc
from jdlgen.generators import create_environment
from jdlgen.importer import (
    ImporterConfiguration,
    JDLImporter,
    create_importer_from_content,
    create_importer_from_files,
)
from jdlgen.insight import InsightReporter
from jdlgen.models import ApplicationWithEntities, Deployment, Entity, ImportState
from jdlgen.runner import GeneratorRunner, InProcessRunner, InvocationResult, SubprocessRunner
from jdlgen.utils import pluralize, print_error, print_success, print_warning
from jdlgen.writer import write_application_config, write_deployment_config, write_entity_config

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ImporterFactory = Callable[[Optional[str], list[str], ImporterConfiguration], JDLImporter]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ImportJDLError(Exception):
    """Raised when an import-jdl run is rejected."""


class GenerationError(Exception):
    """Raised when generating one application, entity or deployment fails."""

    def __init__(self, kind: str, name: str | None, cause: BaseException) -> None:
        self.kind = kind
        self.name = name
        self.cause = cause
        super().__init__(f"Error while generating {kind} {name or '?'}: {cause}")


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


class Schedule(str, Enum):
    """How a batch of generation units is run."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"

    @classmethod
    def for_options(cls, options: ImportOptions) -> "Schedule":
        return cls.SEQUENTIAL if options.interactive else cls.CONCURRENT


async def for_each(
    units: Iterable[T],
    func: Callable[[T], Awaitable[R]],
    schedule: Schedule,
) -> list[R]:
    """Run *func* for every unit and return the results in unit order.

    ``SEQUENTIAL`` awaits each unit before starting the next; ``CONCURRENT``
    starts them all and waits for every one. The first exception propagates.
    """
    if schedule is Schedule.SEQUENTIAL:
        results: list[R] = []
        for unit in units:
            results.append(await func(unit))
        return results
    return list(await asyncio.gather(*(func(unit) for unit in units)))


# ---------------------------------------------------------------------------
# Pipeline state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunContext:
    """Everything the generation stages read. Built once after the import."""

    options: ImportOptions
    settings: ProjectSettings | None
    import_state: ImportState
    pwd: Path

    @property
    def schedule(self) -> Schedule:
        return Schedule.for_options(self.options)

    @property
    def force(self) -> bool | None:
        """Non-interactive runs overwrite files without asking."""
        return True if not self.options.interactive else None

    @property
    def skip_client(self) -> bool:
        return bool(self.options.skip_client or (self.settings and self.settings.skip_client))

    def should_generate_applications(self) -> bool:
        return not self.options.ignore_application and self.import_state.application_count > 0

    def should_generate_deployments(self) -> bool:
        return not self.options.ignore_deployments and len(
            self.import_state.exported_deployments
        ) > 0

    def should_trigger_install(self, index: int) -> bool:
        """Only the last entity in import order installs dependencies."""
        return (
            index == len(self.import_state.exported_entities) - 1
            and not self.options.skip_install
            and not self.skip_client
            and not self.options.json_only
            and not self.should_generate_applications()
        )


@dataclass
class ImportSummary:
    """Outcome of a completed run."""

    jdl_files: list[str]
    import_state: ImportState
    results: list[InvocationResult] = field(default_factory=list)

    @property
    def failures(self) -> list[InvocationResult]:
        return [result for result in self.results if not result.success]

    @property
    def exit_code(self) -> int:
        for result in reversed(self.results):
            if not result.success:
                return result.exit_code
        return 0


def _default_importer_factory(config: Config) -> ImporterFactory:
    def factory(
        content: str | None, files: list[str], configuration: ImporterConfiguration
    ) -> JDLImporter:
        if content:
            return create_importer_from_content(
                content, configuration, config.parser_command, config.parser_timeout
            )
        return create_importer_from_files(
            files, configuration, config.parser_command, config.parser_timeout
        )

    return factory


# ---------------------------------------------------------------------------
# Processor
# ---------------------------------------------------------------------------


class JDLProcessor:
    """Imports a JDL model and drives the generators.

    Attributes:
        jdl_files: Model files (ignored when *jdl_content* is given).
        jdl_content: Inline model content.
        options: Options of the run as received.
        config: Global jdlgen configuration.
        pwd: Directory the run writes into.
        isolated_runner: Runs applications, deployments and per-application
            entities in child processes.
        local_runner: Runs entities of the current project in-process.
    """

    def __init__(
        self,
        jdl_files: list[str] | None,
        jdl_content: str | None,
        options: ImportOptions,
        config: Config | None = None,
        *,
        pwd: str | Path | None = None,
        isolated_runner: GeneratorRunner | None = None,
        local_runner: GeneratorRunner | None = None,
        importer_factory: ImporterFactory | None = None,
        reporter: InsightReporter | None = None,
    ) -> None:
        self.jdl_files = list(jdl_files or [])
        self.jdl_content = jdl_content
        self.options = options
        self.config = config or Config()
        self.pwd = Path(pwd) if pwd is not None else Path.cwd()
        self.isolated_runner = isolated_runner or SubprocessRunner(self.config.generator_command)
        self.local_runner = local_runner or InProcessRunner(create_environment(self.config))
        self.importer_factory = importer_factory or _default_importer_factory(self.config)
        self.reporter = reporter or InsightReporter(
            self.config.insight_url,
            self.config.generator_version,
            timeout=self.config.insight_timeout,
        )
        source = f"content: {jdl_content}" if jdl_content else f"files: {self.jdl_files}"
        logger.debug(
            f"JDLProcessor started with {source} and options: {options.model_dump(exclude_none=True)}"
        )

    # ------------------------------------------------------------------
    # Stage 1: existing project configuration
    # ------------------------------------------------------------------

    def get_config(self) -> tuple[ProjectSettings | None, ImportOptions]:
        """Read the current project's ``.yo-rc.json``, if there is one.

        Returns:
            The project settings (``None`` for a fresh directory) and the
            effective options. Existing projects default to interactive mode.
        """
        path = self.config.yo_rc_path(self.pwd)
        if not path.exists():
            return None, self.options

        configuration = load_yo_rc(path).get(self.config.generator_name)
        if not configuration:
            return None, self.options

        logger.info("Found .yo-rc.json on path. This is an existing app")
        options = self.options
        if options.interactive is None:
            logger.debug("Setting interactive true for existing apps")
            options = options.model_copy(update={"interactive": True})
        return ProjectSettings.from_yo_rc(configuration, options.db), options

    # ------------------------------------------------------------------
    # Stage 2: import
    # ------------------------------------------------------------------

    def importer_configuration(
        self, settings: ProjectSettings | None, options: ImportOptions
    ) -> ImporterConfiguration:
        return ImporterConfiguration(
            database_type=settings.prod_database_type if settings else None,
            application_type=settings.application_type if settings else None,
            application_name=settings.base_name if settings else None,
            generator_version=self.config.generator_version,
            force_no_filtering=options.force,
            creation_timestamp=options.creation_timestamp,
            skip_file_generation=True,
        )

    async def import_jdl(
        self, settings: ProjectSettings | None, options: ImportOptions
    ) -> ImportState:
        """Parse the model into an ``ImportState``.

        Raises:
            Exception: Whatever the importer raised, after reporting it.
        """
        logger.info("The JDL is being parsed.")
        configuration = self.importer_configuration(settings, options)
        try:
            importer = self.importer_factory(self.jdl_content, self.jdl_files, configuration)
            import_state = await importer.import_state()
        except Exception as exc:
            logger.debug("Error:", exc_info=exc)
            print_error(f"{type(exc).__name__}: {exc}")
            logger.error(f"Error while parsing applications and entities from the JDL {exc}")
            raise

        logger.debug(f"importState exportedEntities: {len(import_state.exported_entities)}")
        logger.debug(f"importState exportedApplications: {len(import_state.exported_applications)}")
        logger.debug(f"importState exportedDeployments: {len(import_state.exported_deployments)}")
        if import_state.exported_entities:
            entity_names = ", ".join(import_state.entity_names())
            logger.info(f"Found entities: [yellow]{entity_names}[/yellow].")
        else:
            logger.info("[yellow]No change in entity configurations, no entities were updated.[/yellow]")
        logger.info("The JDL has been successfully parsed")
        return import_state

    async def send_insight(self, options: ImportOptions) -> bool:
        if options.no_insight:
            return False
        return await self.reporter.send_sub_gen_event("generator", "import-jdl")

    # ------------------------------------------------------------------
    # Stage 3: applications
    # ------------------------------------------------------------------

    async def generate_applications(self, ctx: RunContext) -> list[InvocationResult]:
        """Write and generate every imported application.

        A single application is generated in ``pwd``; several are generated
        in ``pwd/<baseName>`` each.
        """
        if not ctx.should_generate_applications():
            logger.debug("Applications not generated")
            return []

        applications = list(ctx.import_state.exported_applications_with_entities.items())
        count = len(applications)
        logger.info(f"Generating {count} {pluralize('application', count)}.")
        in_folder = count > 1

        async def generate(item: tuple[str, ApplicationWithEntities]) -> InvocationResult:
            key, application = item
            base_name = application.base_name or key
            try:
                return await self._generate_application(ctx, application, base_name, in_folder)
            except Exception as exc:
                logger.error(f"Error while generating applications from the parsed JDL\n{exc}")
                raise GenerationError("application", base_name, exc) from exc

        return await for_each(applications, generate, ctx.schedule)

    async def _generate_application(
        self,
        ctx: RunContext,
        application: ApplicationWithEntities,
        base_name: str,
        in_folder: bool,
    ) -> InvocationResult:
        logger.debug(f"Generating application: {application.config}")
        cwd = ctx.pwd / base_name if in_folder else ctx.pwd
        write_application_config(application, cwd, self.config)

        options: dict[str, Any] = {
            "force": ctx.force,
            "with_entities": True if application.entities else None,
            **ctx.options.generator_options(),
        }
        return await self.isolated_runner.run(f"{self.config.cli_name}:app", cwd, options)

    # ------------------------------------------------------------------
    # Stage 4: entities
    # ------------------------------------------------------------------

    async def generate_entities(self, ctx: RunContext) -> list[InvocationResult]:
        """Write and generate imported entities.

        Skipped when applications were generated, since the application
        generator already produced their entities.
        """
        entities = ctx.import_state.exported_entities
        if not entities or ctx.should_generate_applications():
            logger.debug("Entities not generated")
            return []

        count = len(entities)
        logger.info(f"Generating {count} {pluralize('entity', count)}.")

        async def generate(item: tuple[int, Entity]) -> list[InvocationResult]:
            index, entity = item
            try:
                return await self._generate_entity(ctx, entity, ctx.should_trigger_install(index))
            except Exception as exc:
                logger.error(f"Error while generating entities from the parsed JDL\n{exc}")
                raise GenerationError("entity", entity.name, exc) from exc

        batches = await for_each(list(enumerate(entities)), generate, Schedule.CONCURRENT)
        return [result for batch in batches for result in batch]

    def entity_folders(self, ctx: RunContext, entity: Entity) -> list[str]:
        """Application folders *entity* is generated in; empty means ``pwd``."""
        owners = list(dict.fromkeys(entity.applications))
        if not owners or ctx.import_state.application_count == 1:
            return []
        if ctx.settings is not None and owners == [ctx.settings.base_name]:
            return []
        return owners

    async def _generate_entity(
        self, ctx: RunContext, entity: Entity, trigger_install: bool
    ) -> list[InvocationResult]:
        options: dict[str, Any] = {
            "force": ctx.force,
            **ctx.options.generator_options(),
            "skip_install": not trigger_install,
            "regenerate": True,
            "from_cli": True,
        }
        command = f"{self.config.cli_name}:entity {entity.name}"

        folders = self.entity_folders(ctx, entity)
        if folders:

            async def generate_in(base_name: str) -> InvocationResult | None:
                logger.info(
                    f"Generating entity {entity.name} for application {base_name} "
                    "in a new parallel process"
                )
                cwd = ctx.pwd / base_name
                write_entity_config(entity, cwd, self.config)
                if ctx.options.json_only:
                    logger.info("Entity JSON files created. Entity generation skipped.")
                    return None
                return await self.isolated_runner.run(command, cwd, options)

            results = await for_each(folders, generate_in, ctx.schedule)
            return [result for result in results if result is not None]

        write_entity_config(entity, ctx.pwd, self.config)
        if ctx.options.json_only:
            logger.info("Entity JSON files created. Entity generation skipped.")
            return []
        return [await self.local_runner.run(command, ctx.pwd, options)]

    # ------------------------------------------------------------------
    # Stage 5: deployments
    # ------------------------------------------------------------------

    async def generate_deployments(self, ctx: RunContext) -> list[InvocationResult]:
        """Generate every deployment in ``pwd/<deploymentType>``."""
        if not ctx.should_generate_deployments():
            logger.debug("Deployments not generated")
            return []

        deployments = ctx.import_state.exported_deployments
        count = len(deployments)
        logger.info(f"Generating {count} {pluralize('deployment', count)}.")

        async def generate(deployment: Deployment) -> InvocationResult:
            try:
                return await self._generate_deployment(ctx, deployment)
            except Exception as exc:
                logger.error(f"Error while generating deployments from the parsed JDL\n{exc}")
                raise GenerationError("deployment", deployment.deployment_type, exc) from exc

        return await for_each(deployments, generate, ctx.schedule)

    async def _generate_deployment(
        self, ctx: RunContext, deployment: Deployment
    ) -> InvocationResult:
        deployment_type = deployment.deployment_type
        if not deployment_type:
            raise ValueError("deployment has no deploymentType")
        logger.info(f"Generating deployment {deployment_type} in a new parallel process")
        logger.debug(f"Generating deployment: {deployment.settings}")

        cwd = ctx.pwd / deployment_type
        write_deployment_config(deployment, cwd, self.config)

        options: dict[str, Any] = {
            "force": ctx.force,
            **ctx.options.generator_options(),
            "skip_prompts": True,
        }
        return await self.isolated_runner.run(
            f"{self.config.cli_name}:{deployment_type}", cwd, options
        )

    # ------------------------------------------------------------------
    # Whole run
    # ------------------------------------------------------------------

    async def process(self) -> ImportSummary:
        """Run every stage in order."""
        settings, options = self.get_config()
        import_state = await self.import_jdl(settings, options)
        await self.send_insight(options)

        ctx = RunContext(options=options, settings=settings, import_state=import_state, pwd=self.pwd)
        results: list[InvocationResult] = []
        results.extend(await self.generate_applications(ctx))
        results.extend(await self.generate_entities(ctx))
        results.extend(await self.generate_deployments(ctx))
        return ImportSummary(jdl_files=self.jdl_files, import_state=import_state, results=results)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def import_jdl(
    jdl_files: list[str],
    options: ImportOptions | None = None,
    config: Config | None = None,
    **processor_kwargs: Any,
) -> ImportSummary:
    """Import JDL files (or ``options.inline`` content) and generate them.

    Args:
        jdl_files: Model files.
        options: Options of the run.
        config: Global jdlgen configuration.
        **processor_kwargs: Forwarded to ``JDLProcessor`` (``pwd``, runners,
            ``importer_factory``, ``reporter``).

    Raises:
        ImportJDLError: Wrapping whatever stopped the run.
    """
    options = options or ImportOptions()
    source = "with inline content" if options.inline else " ".join(jdl_files)
    logger.info(f"[yellow]Executing import-jdl {source}[/yellow]")
    logged_options = options.model_dump(exclude_none=True)
    if options.inline:
        logged_options["inline"] = "inline content"
    logger.debug(f"[yellow]Options: {logged_options}[/yellow]")

    try:
        processor = JDLProcessor(jdl_files, options.inline, options, config, **processor_kwargs)
        summary = await processor.process()
    except Exception as exc:
        logger.error(f"Error during import-jdl: {exc}")
        raise ImportJDLError(f"Error during import-jdl: {exc}") from exc

    print_success()
    if summary.failures:
        print_warning(
            f"{len(summary.failures)} generator {pluralize('process', len(summary.failures))} "
            "exited with errors."
        )
    return summary
