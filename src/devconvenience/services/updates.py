"""Update unit and schema update services for the db-update command."""

import importlib
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from rich.markup import escape
from rich.prompt import Confirm

from devconvenience.errors import ConfigError


class UpdateUnit(Protocol):
    def should_run(self) -> bool: ...

    def run(self) -> Any: ...


class SchemaInstaller(Protocol):
    def get_commands(self) -> Mapping[str, Mapping[str, str]]: ...

    def exec_command(self, command_hash: str) -> None: ...


def load_reference(reference: str) -> Any:
    """Imports the object named by a `package.module:attribute` reference."""
    module_name, separator, attribute = reference.partition(":")
    if not separator or not module_name or not attribute:
        raise ConfigError(f"Invalid reference '{reference}'. Expected `module:attribute`.")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"Could not import module '{module_name}': {exc}") from exc

    target: Any = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ConfigError(f"'{reference}' does not exist.") from exc
    return target


def build_units(references: Sequence[str]) -> List[UpdateUnit]:
    """Instantiates update units from configured references, keeping their order."""
    units = []
    for reference in references:
        target = load_reference(reference)
        unit = target
        is_factory = callable(target) and not hasattr(target, "should_run")
        if isinstance(target, type) or is_factory:
            unit = target()
        if not all(callable(getattr(unit, method, None)) for method in ("should_run", "run")):
            raise ConfigError(
                f"'{reference}' is not an update unit: should_run() and run() required."
            )
        units.append(unit)
    return units


def _message_of(result: Any) -> str:
    if result is None:
        return ""
    if isinstance(result, str):
        return result.strip()
    return str(getattr(result, "message", "") or "").strip()


class UpdateManager:
    """Runs registered update units once, in registration order."""

    def __init__(self, logger, units: Optional[Sequence[UpdateUnit]] = None):
        self.logger = logger
        self.units: List[UpdateUnit] = list(units or [])

    def add_unit(self, unit: UpdateUnit):
        self.units.append(unit)

    def run_updates(self) -> List[str]:
        messages = []
        for unit in self.units:
            name = type(unit).__name__
            if not unit.should_run():
                self.logger.debug("Skipping update unit %s.", name)
                continue

            self.logger.info("Running update unit %s.", name)
            message = _message_of(unit.run())
            if message:
                messages.append(message)
        return messages


class SchemaUpdateService:
    """Shows and applies pending schema changes reported by a schema installer."""

    MAX_PASSES = 10

    CATEGORY_LABELS = {
        "CREATE": "Create new tables",
        "ALTER_TABLE": "Change table options",
        "ALTER_CHANGE": "Change existing columns",
        "ALTER_ADD": "Add new columns",
        "DROP": "Drop tables",
        "ALTER_DROP": "Drop columns",
    }

    def __init__(
        self,
        installer_factory: Callable[[], SchemaInstaller],
        console,
        logger,
        confirm: Optional[Callable[[str, bool], bool]] = None,
        command_name: str = "db-update",
    ):
        self.installer_factory = installer_factory
        self.console = console
        self.logger = logger
        self.confirm = confirm or self._ask
        self.command_name = command_name

    def _ask(self, question: str, default: bool) -> bool:
        return Confirm.ask(question, default=default, console=self.console)

    @staticmethod
    def default_answers(complete: bool) -> Dict[str, bool]:
        return {
            "CREATE": True,
            "ALTER_TABLE": True,
            "ALTER_CHANGE": True,
            "ALTER_ADD": True,
            "DROP": complete,
            "ALTER_DROP": complete,
        }

    def label(self, category: str) -> str:
        return self.CATEGORY_LABELS.get(category, category)

    def _apply_commands(
        self,
        installer: SchemaInstaller,
        commands: Mapping[str, Mapping[str, str]],
        defaults: Dict[str, bool],
        force: bool,
        dump_sql: bool,
    ) -> int:
        total = 0
        for category, statements in commands.items():
            label = escape(self.label(category))
            total += len(statements)

            if dump_sql:
                self.console.print(
                    f'The following SQL [cyan]"{label}"[/cyan] statements will be executed:'
                )
                for statement in statements.values():
                    self.console.print(f"    {escape(statement)};")
                self.console.print()

            if not force:
                continue

            question = f'Do you want to run the "{self.label(category)}" statements?'
            if not self.confirm(question, defaults.get(category, False)):
                self.console.print("Skipping these statements...")
                continue

            self.console.print("Updating database schema...")
            for command_hash in statements:
                installer.exec_command(command_hash)

            noun = "query was" if len(statements) == 1 else "queries were"
            self.console.print(f"    [green]{len(statements)}[/green] {noun} executed")
            self.logger.info("Executed %s statement(s) of category %s.", len(statements), category)
            self.console.print("[bold green]Database schema updated successfully![/bold green]")

        return total

    def run(self, force: bool = False, dump_sql: bool = False, complete: bool = False) -> int:
        defaults = self.default_answers(complete)
        total = 0

        for _ in range(self.MAX_PASSES):
            installer = self.installer_factory()
            commands = installer.get_commands()
            if not commands:
                self.console.print(
                    "[bold green]Nothing to update - your database is already in sync "
                    "with the current entity metadata.[/bold green]"
                )
                return 0

            total = self._apply_commands(installer, commands, defaults, force, dump_sql)
            if not force:
                break

            self.console.print("[bold green]Database updates successfully executed.[/bold green]")
            remaining = self.installer_factory().get_commands()
            pending_safe = [
                name
                for name, statements in remaining.items()
                if statements and defaults.get(name, False)
            ]
            if not pending_safe:
                return 0
            self.logger.info("Schema changes are still pending, starting over.")
        else:
            self.console.print(
                f"[bold yellow]Schema changes are still pending after {self.MAX_PASSES} passes."
                "[/bold yellow]"
            )
            self.logger.warning("Schema changes still pending after %s passes.", self.MAX_PASSES)
            return 1

        if dump_sql:
            return 0

        self.console.print(
            "[bold yellow]This operation should not be executed in a production environment!"
            "[/bold yellow]\n\n"
            "Use the incremental update to detect changes during development and use\n"
            "the SQL DDL provided to manually update your database in production."
        )
        self.console.print(
            f'The schema updater would execute [cyan]"{total}"[/cyan] queries '
            "to update the database.\n\n"
            "Please run the operation by passing one - or both - of the following options:\n\n"
            f"    [cyan]{self.command_name} --force[/cyan] to execute the command\n"
            f"    [cyan]{self.command_name} --dump-sql[/cyan] to dump the SQL statements "
            "to the screen"
        )
        return 1
