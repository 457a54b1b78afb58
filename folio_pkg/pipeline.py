"""
The build pipeline: one run of one strategy against one source tree.

    idle -> indexing -> copying-assets -> strategy-processing -> completed
                                                               -> failed
                                                               -> cancelled

Cancellation is cooperative. The abort signal is consulted at checkpoints
between phases and between files, never in the middle of a file's
read/render/write, so a cancelled build may leave a partial output tree.
"""

import asyncio
import logging
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional, Type

from .build_log import BuildLogger, LogCallback
from .classifier import is_ignored, relative_to
from .disk import Disk, normalize_disk_path
from .errors import BuildCancelledError, BuildError, ConfigError, UnclassifiedError
from .indexer import SourceIndexer
from .markdown_processor import MarkdownProcessor
from .models import BuildConfig, BuildLogLine, BuildResult, BuildStatus, Strategy
from .output import OutputWriter
from .pages import PageLoader
from .records import BuildRecordStore, MemoryBuildStore
from .renderer import TemplateRenderer
from .strategies import STRATEGIES, BuildContext, BuildStrategyRunner
from .template_helpers import utc_now


class StrategyPipeline:
    def __init__(self, config: BuildConfig, source_disk: Disk, output_disk: Optional[Disk] = None,
                 record_store: Optional[BuildRecordStore] = None, cancel_signal=None,
                 on_log: Optional[LogCallback] = None, on_error: Optional[LogCallback] = None,
                 indexer: Optional[SourceIndexer] = None,
                 strategies: Optional[Dict[Strategy, Type[BuildStrategyRunner]]] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.config = config
        self.source_disk = source_disk
        self.output_disk = output_disk or source_disk
        self.record_store = record_store or MemoryBuildStore()
        self.cancel_signal = cancel_signal
        self.strategies = strategies or STRATEGIES
        self.clock = clock
        self.logger = logging.getLogger('Folio.pipeline')

        self.build_log = BuildLogger(on_log=on_log, on_error=on_error)
        self.indexer = indexer or SourceIndexer(source_disk, config.source_root)
        self.renderer = TemplateRenderer()
        self.processor = MarkdownProcessor(
            source_disk, normalize_disk_path(config.source_root), self.renderer, self.build_log,
            require_layout=config.require_layout, site=dict(config.site),
        )
        self.loader = PageLoader(self.indexer, source_disk, self.processor)
        self.writer = OutputWriter(self.output_disk, config.output_root, minify_assets=config.minify)

        self.status = BuildStatus.IDLE
        self.status_history: List[BuildStatus] = [BuildStatus.IDLE]
        self.build_id: Optional[str] = None
        self.build_time: Optional[datetime] = None
        self._cancel_requested = threading.Event()

    @property
    def logs(self) -> List[BuildLogLine]:
        return self.build_log.lines

    @property
    def is_cancel_requested(self) -> bool:
        if self._cancel_requested.is_set():
            return True
        return bool(self.cancel_signal is not None and self.cancel_signal.is_set())

    def cancel(self) -> None:
        """Ask the running build to stop at its next checkpoint."""
        if not self._cancel_requested.is_set():
            self._cancel_requested.set()
            self.build_log.warning("Build cancelled by user")

    def _transition(self, status: BuildStatus) -> None:
        if self.status.is_terminal:
            raise BuildError(f"Build already finished with status {self.status.value}")
        self.logger.debug(f"Build status: {self.status.value} -> {status.value}")
        self.status = status
        self.status_history.append(status)

    async def _checkpoint(self) -> None:
        await asyncio.sleep(0)
        if self.is_cancel_requested:
            raise BuildCancelledError()

    def _preflight(self) -> Strategy:
        strategy = Strategy.parse(self.config.strategy)
        if strategy not in self.strategies:
            raise ConfigError(f"No runner registered for strategy: {strategy.value}")

        if self.output_disk is self.source_disk:
            try:
                output_rel = relative_to(self.config.source_root, self.config.output_root)
            except ValueError:
                output_rel = None
            if output_rel == '':
                raise ConfigError("Output root must differ from the source root")
            if output_rel is not None and not is_ignored(output_rel):
                raise ConfigError(
                    f"Output root {self.config.output_root} lies inside the source tree; "
                    "use a reserved or underscore-prefixed directory such as /.build"
                )
        return strategy

    def _create_context(self) -> BuildContext:
        return BuildContext(
            config=self.config,
            source_disk=self.source_disk,
            output_disk=self.output_disk,
            indexer=self.indexer,
            writer=self.writer,
            renderer=self.renderer,
            processor=self.processor,
            loader=self.loader,
            build_log=self.build_log,
            checkpoint=self._checkpoint,
            transition=self._transition,
            build_time=self.build_time,
        )

    def _create_build_record(self, strategy: Strategy) -> str:
        label = f"{strategy.value.capitalize()} Build - {datetime.now():%Y-%m-%d %H:%M:%S}"
        return self.record_store.create(label, self.source_disk.guid, self.logs)

    async def run(self) -> BuildResult:
        """Execute the build. Fatal errors are reported in the result, not raised."""
        if self.status is not BuildStatus.IDLE:
            raise RuntimeError("A StrategyPipeline can only be run once")

        self.build_time = self.clock()
        self.processor.build_time = self.build_time

        try:
            strategy = self._preflight()
            runner = self.strategies[strategy]()
            self.build_log.info(f"Starting {strategy.value} build...")
            self.build_log.info(f"Source disk: {self.source_disk.guid}")
            self.build_log.info(f"Output path: {self.writer.output_root}")
            await self._checkpoint()

            self._transition(BuildStatus.INDEXING)
            self.build_log.info("Indexing source files...")
            await self.indexer.index()
            file_count = sum(1 for _ in self.indexer.files())
            self.build_log.info(f"File tree loaded with {file_count} files")

            self.build_log.info("Creating output directory...")
            self.writer.ensure_root()
            await self._checkpoint()

            self.build_log.info(f"Executing {strategy.value} build strategy...")
            await runner.run(self._create_context())
            self.build_log.info(f"{strategy.value} build strategy completed")
            await self._checkpoint()

            self.build_log.info(f"Total files in build output: {len(self.writer.written)}")
            self.build_log.info("Build completed successfully!")
            self.build_id = self._create_build_record(strategy)
            self.build_log.info(f"Build saved with ID: {self.build_id}")
            self._transition(BuildStatus.COMPLETED)
            return BuildResult(success=True, status=self.status, build_id=self.build_id, logs=self.logs)
        except BuildCancelledError as e:
            return self._finish_cancelled(str(e))
        except asyncio.CancelledError:
            self._finish_cancelled("Build cancelled")
            raise
        except BuildError as e:
            return self._finish_failed(e)
        except Exception as e:
            self.logger.debug("Unexpected build error", exc_info=True)
            return self._finish_failed(UnclassifiedError(f"Unexpected error while building: {e}", original=e))

    def _finish_failed(self, error: BuildError) -> BuildResult:
        self.build_log.error(f"Build failed: {error}")
        self.status = BuildStatus.FAILED
        self.status_history.append(self.status)
        return BuildResult(success=False, status=self.status, error=str(error), logs=self.logs)

    def _finish_cancelled(self, message: str) -> BuildResult:
        self.build_log.warning(message)
        self.status = BuildStatus.CANCELLED
        self.status_history.append(self.status)
        return BuildResult(success=False, status=self.status, error=message, logs=self.logs)


async def run_build(config: BuildConfig, source_disk: Disk, **kwargs) -> BuildResult:
    """Convenience wrapper: build once and return the result."""
    return await StrategyPipeline(config, source_disk, **kwargs).run()
