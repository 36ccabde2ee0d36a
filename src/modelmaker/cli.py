"""Model and migration generator CLI.

Provides an interactive make command that creates a new Eloquent model with
its create migration, or merges new fields, relationships and indexes into an
existing model with a guarded alter migration.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
import typer

from modelmaker.models.config import DEFAULT_MODEL_NAMESPACE, GeneratorConfig
from modelmaker.services.factory import create_generation_service
from modelmaker.services.prompter import TyperPrompter
from modelmaker.services.session import InteractiveSession

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    logger_factory=lambda name: structlog.PrintLogger(file=sys.stderr),
    wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
    context_class=dict,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

app = typer.Typer(
    name="modelmaker",
    help="""Interactively generate models, relationships, indexes and migrations.

Examples:

  # Create a new model (app/Models/Blog/Post.php) and its create migration
  uv run modelmaker make Blog/Post

  # Target a project that still uses the $casts property
  uv run modelmaker make Post --project-root ../shop --legacy-casts

Alter migrations guard index changes with Schema::hasIndex, which requires Laravel 11 or later.""",
    rich_markup_mode="markdown",
)


@app.command()
def make(
    name: str = typer.Argument(
        ...,
        help="Model name, optionally namespaced (e.g. Post or Blog/Post)",
    ),
    project_root: Optional[str] = typer.Option(
        None,
        "--project-root",
        "-r",
        help="Application root containing app/Models and database/migrations (default: current directory)",
    ),
    modern_casts: bool = typer.Option(
        True,
        "--modern-casts/--legacy-casts",
        help="Render casts as a casts() method (modern) or a $casts property (legacy)",
    ),
    namespace: str = typer.Option(
        DEFAULT_MODEL_NAMESPACE,
        "--namespace",
        "-n",
        help="Root namespace for models",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Write files without the final confirmation",
    ),
) -> None:
    """Create or update a model and its migrations."""
    root = Path(project_root) if project_root else Path.cwd()

    if not root.is_dir():
        logger.error("project_root_not_found", project_root=str(root))
        raise typer.Exit(1)

    config = GeneratorConfig.for_project(root, modern_casts=modern_casts, model_namespace=namespace)
    service = create_generation_service(config)

    try:
        target = service.resolve_target(name)
    except ValueError as e:
        logger.error("invalid_model_name", name=name, error=str(e))
        typer.echo(f"Invalid model name: {e}")
        raise typer.Exit(1)

    logger.info(
        "make_started",
        record_type=target.qualified_name,
        project_root=str(root),
        modern_casts=modern_casts,
    )

    session = InteractiveSession(service, TyperPrompter(), assume_yes=yes, logger=logger)
    session.run(target)


@app.command()
def version() -> None:
    """Show version information."""
    from modelmaker import __version__

    typer.echo(f"modelmaker {__version__}")
