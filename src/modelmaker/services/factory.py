"""Factory functions for creating and wiring generation services.

Provides a production factory backed by the filesystem and a test factory
that uses an in-memory file store and a deterministic clock.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

import structlog

from modelmaker.models.config import GeneratorConfig
from modelmaker.services.extractor import DeclarationExtractor
from modelmaker.services.file_store import FileStore, InMemoryFileStore
from modelmaker.services.generator import GenerationService, MigrationClock
from modelmaker.services.merger import DeclarationMerger
from modelmaker.services.migration import MigrationSynthesizer
from modelmaker.services.model_builder import ModelSourceBuilder
from modelmaker.services.schema_knowledge import SchemaKnowledgeAggregator

_TEST_EPOCH = datetime(2024, 1, 1, 12, 0, 0)


def _build_service(
    config: GeneratorConfig,
    file_store: FileStore,
    clock: MigrationClock,
    logger: structlog.stdlib.BoundLogger,
) -> GenerationService:
    extractor = DeclarationExtractor(logger=logger)
    return GenerationService(
        config=config,
        file_store=file_store,
        extractor=extractor,
        merger=DeclarationMerger(
            extractor=extractor,
            model_namespace=config.model_namespace,
            modern_casts=config.modern_casts,
            logger=logger,
        ),
        aggregator=SchemaKnowledgeAggregator(extractor=extractor, logger=logger),
        synthesizer=MigrationSynthesizer(logger=logger),
        builder=ModelSourceBuilder(
            model_namespace=config.model_namespace,
            modern_casts=config.modern_casts,
            logger=logger,
        ),
        clock=clock,
        logger=logger,
    )


def create_generation_service(config: GeneratorConfig) -> GenerationService:
    """Create a production GenerationService working on the project directory.

    Args:
        config: Generator configuration (directories, namespace, casts dialect).

    Returns:
        Configured GenerationService ready for use.
    """
    logger = structlog.get_logger(__name__)
    return _build_service(config, FileStore(logger=logger), MigrationClock(), logger)


def create_test_generation_service(
    project_root: Path = Path("/project"),
    files: dict[Path, str] | None = None,
    modern_casts: bool = True,
    now: Callable[[], datetime] | None = None,
) -> GenerationService:
    """Create a GenerationService with an in-memory file store for testing.

    The default clock advances one second per reading and sleeping is a
    no-op, so migration stamps are deterministic.

    Args:
        project_root: Root the config's directories are derived from.
        files: Initial file contents keyed by absolute path.
        modern_casts: Whether coercions use the accessor function dialect.
        now: Clock override.

    Returns:
        Configured GenerationService whose file store is an InMemoryFileStore.
    """
    logger = structlog.get_logger(__name__)
    config = GeneratorConfig.for_project(project_root, modern_casts=modern_casts)

    if now is None:
        ticks = iter(range(1_000_000))

        def _tick() -> datetime:
            return _TEST_EPOCH + timedelta(seconds=next(ticks))

        now = _tick

    clock = MigrationClock(now=now, sleep=lambda _seconds: None)
    return _build_service(config, InMemoryFileStore(files, logger=logger), clock, logger)
