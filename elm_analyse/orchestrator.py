"""Analysis orchestrator — boot the engine, wait for its report, derive an exit code."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Protocol

import structlog

from elm_analyse import reporter as default_reporter
from elm_analyse.config import RunConfig, load_elm_package
from elm_analyse.engine.base import EngineHandle, Port
from elm_analyse.engine.subprocess_engine import create_engine
from elm_analyse.models import EngineConfig, Report
from elm_analyse.ports.file_loading import FileLoadingPorts
from elm_analyse.ports.logging_ports import LoggingPorts

logger = structlog.get_logger(__name__)

EXIT_CLEAN = 0
EXIT_FINDINGS = 1


class RegistryResolver(Protocol):
    async def get_dependencies(self) -> list[Any]: ...


EngineFactory = Callable[[EngineConfig], EngineHandle]
Reporter = Callable[[str, Report], None]


def exit_code_for(report: Report) -> int:
    """1 when the report has findings or unused dependencies, else 0."""
    if report.messages or report.unused_dependencies:
        return EXIT_FINDINGS
    return EXIT_CLEAN


class AnalysisOrchestrator:
    """
    Run one whole-project analysis.

    Step 1: load elm.json
    Step 2: resolve the package registry
    Step 3: create the engine with {server=False, elmPackage, registry}
    Step 4: wire report, logging and file-loading ports, then start
    Step 5: wait for the single report, render it, map it to an exit code
    """

    def __init__(
        self,
        config: RunConfig,
        resolver: RegistryResolver,
        engine_factory: EngineFactory | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        self.config = config
        self.resolver = resolver
        self.engine_factory = engine_factory or self._default_engine_factory
        self.reporter = reporter or default_reporter.report
        self.report: Report | None = None

    def _default_engine_factory(self, engine_config: EngineConfig) -> EngineHandle:
        return create_engine(engine_config, self.config.engine_command)

    async def run(self) -> int:
        elm_package = load_elm_package(self.config.directory)
        registry = await self.resolver.get_dependencies()
        logger.info("orchestrator.registry_resolved", packages=len(registry))

        engine = self.engine_factory(
            EngineConfig(
                server=False,
                elm_package=elm_package.model_dump(by_alias=True),
                registry=registry,
            )
        )
        report_ready: asyncio.Future[Report] = asyncio.get_running_loop().create_future()

        def on_report(payload: Any) -> None:
            if report_ready.done():
                logger.warning("orchestrator.duplicate_report")
                return
            try:
                report_ready.set_result(Report.from_payload(payload))
            except Exception as e:
                report_ready.set_exception(e)

        engine.subscribe(Port.SEND_REPORT_VALUE, on_report)
        LoggingPorts(engine, self.config).wire()
        FileLoadingPorts(engine, self.config, elm_package.source_dirs()).wire()

        try:
            await engine.start()
            self.report = await engine.wait_for(report_ready)
        finally:
            await engine.close()

        self.reporter(self.config.format, self.report)
        code = exit_code_for(self.report)
        logger.info(
            "orchestrator.done",
            messages=len(self.report.messages),
            unused_dependencies=len(self.report.unused_dependencies),
            exit_code=code,
        )
        return code
