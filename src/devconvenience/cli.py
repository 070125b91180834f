import logging
import os

import click
from rich.logging import RichHandler

from .core import SyncOrchestrator, console
from .errors import ConvenienceError
from .models import DEFAULT_TIMEOUT, Settings
from .services.command_runner import CommandRunner
from .services.config_loader import ConfigLoader
from .services.environment import EnvironmentResolver
from .services.image_optim import ImageOptimizer
from .services.updates import SchemaUpdateService, UpdateManager, build_units, load_reference

logger = logging.getLogger("devconvenience")


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _confirm(assume_yes: bool):
    if assume_yes:
        return lambda _question: True
    return lambda question: click.confirm(question, default=True)


def _confirm_with_default(question: str, default: bool) -> bool:
    return click.confirm(question, default=default)


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


def build_settings(config_values, project_dir=None) -> Settings:
    project_dir = _resolve_option(project_dir, config_values, "project_dir", default=os.getcwd())
    timeout = int(_resolve_option(None, config_values, "timeout", default=DEFAULT_TIMEOUT))
    if timeout <= 0:
        raise ConvenienceError("`timeout` must be a positive number of seconds.")

    options = {
        key: config_values[key]
        for key in (
            "manifest_file",
            "console",
            "web_dir",
            "files_dir",
            "node_binary",
            "compressor_script",
            "schema_installer",
        )
        if config_values.get(key) is not None
    }
    options.update(ConfigLoader.image_options(config_values))

    return Settings(
        project_dir=os.path.abspath(project_dir),
        timeout=timeout,
        update_units=tuple(config_values.get("update_units") or ()),
        **options,
    )


@click.group()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Path to a YAML configuration file. Defaults to .devconvenience.yml if present.",
)
@click.option(
    "--project-dir",
    required=False,
    type=click.Path(file_okay=False),
    help="Project root containing .mage.yml (default: current directory).",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.pass_context
def main(ctx, config, project_dir, verbose, log_file):
    """Developer convenience commands for CMS projects."""
    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), ConfigLoader.DEFAULT_FILE_NAME)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
        settings = build_settings(config_values, project_dir)
    except (ConvenienceError, ValueError, TypeError) as exc:
        raise click.ClickException(str(exc)) from exc

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    ctx.obj = settings


@main.command("sync")
@click.argument("environment")
@click.argument("timeout", required=False, type=click.IntRange(min=0))
@click.option(
    "--database-only",
    is_flag=True,
    default=False,
    help="Only synchronise the database, keep the local files directory.",
)
@click.option("--yes", "-y", is_flag=True, default=False, help="Do not ask for confirmation.")
@click.pass_obj
def sync(settings, environment, timeout, database_only, yes):
    """Synchronise database and files from a remote installation."""
    try:
        descriptor = EnvironmentResolver(settings, logger).resolve(environment)
    except ConvenienceError as exc:
        raise click.ClickException(str(exc)) from exc

    orchestrator = SyncOrchestrator(settings=settings, descriptor=descriptor, confirm=_confirm(yes))
    raise SystemExit(orchestrator.run(timeout=timeout, database_only=database_only))


@main.command("db-update")
@click.option(
    "--complete",
    is_flag=True,
    default=False,
    help="Also drop tables and columns that are no longer part of the schema.",
)
@click.option(
    "--dump-sql",
    is_flag=True,
    default=False,
    help="Dump the generated SQL statements to the screen (does not execute them).",
)
@click.option(
    "--force",
    "-f",
    is_flag=True,
    default=False,
    help="Execute the generated SQL statements against the database.",
)
@click.pass_obj
def db_update(settings, complete, dump_sql, force):
    """Run pending update units and schema changes."""
    try:
        units = build_units(settings.update_units)
        installer_factory = None
        if settings.schema_installer:
            installer_factory = load_reference(settings.schema_installer)
    except ConvenienceError as exc:
        raise click.ClickException(str(exc)) from exc

    console.rule("Running database updates")

    try:
        messages = UpdateManager(logger, units).run_updates()
    except ConvenienceError as exc:
        raise click.ClickException(str(exc)) from exc
    except Exception as exc:
        console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
        logger.exception("Update unit failed")
        raise SystemExit(1)

    for message in messages:
        console.print(f" * {message}", markup=False)

    if installer_factory is None:
        if not messages:
            console.print("[bold green]Nothing to update.[/bold green]")
        raise SystemExit(0)

    service = SchemaUpdateService(
        installer_factory=lambda: installer_factory(settings),
        console=console,
        logger=logger,
        confirm=_confirm_with_default,
        command_name="devconvenience db-update",
    )
    raise SystemExit(service.run(force=force, dump_sql=dump_sql, complete=complete))


@main.command("image-optim")
@click.argument("environment")
@click.option("--yes", "-y", is_flag=True, default=False, help="Do not ask for confirmation.")
@click.pass_obj
def image_optim(settings, environment, yes):
    """Optimize all JPEG and PNG images in the files directory of a remote installation."""
    try:
        target = EnvironmentResolver(settings, logger).resolve_image_target(environment)
        runner = CommandRunner(logger=logger, console=console, default_timeout=settings.timeout)
        optimizer = ImageOptimizer(
            settings=settings,
            target=target,
            runner=runner,
            console=console,
            logger=logger,
            confirm=_confirm(yes),
        )
        exit_code = optimizer.run()
    except ConvenienceError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
