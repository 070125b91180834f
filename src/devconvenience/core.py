import logging
import shlex
import time
from typing import Callable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from .errors import CommandFailure, UserDeclined
from .models import EnvironmentDescriptor, Settings, SubTaskResult
from .services.command_runner import CommandRunner
from .services.database import DatabaseService
from .services.filesystem import FileSystemService

console = Console()
logger = logging.getLogger("devconvenience")


class SyncOrchestrator:
    """Copies files and database of a remote installation into the local project."""

    EXIT_SUCCESS = 0
    EXIT_DECLINED = 1
    EXIT_FAILED = 2

    CONFIRM_QUESTION = (
        "Are you sure to synchronise from a remote installation? "
        "This will overwrite your local data!"
    )

    def __init__(
        self,
        settings: Settings,
        descriptor: EnvironmentDescriptor,
        runner=None,
        console: Console = console,
        logger: logging.Logger = logger,
        confirm: Optional[Callable[[str], bool]] = None,
        create_symlinks: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.descriptor = descriptor
        self.console = console
        self.logger = logger
        self.runner = runner or CommandRunner(
            logger=logger, console=console, default_timeout=settings.timeout
        )
        self.confirm = confirm or self._ask
        self.symlink_callback = create_symlinks
        self.clock = clock

        self.filesystem_service = FileSystemService(runner=self.runner, logger=logger)
        self.database_service = DatabaseService(runner=self.runner, logger=logger)

        self.results: List[SubTaskResult] = []
        self.failure: Optional[CommandFailure] = None

    def _ask(self, question: str) -> bool:
        return Confirm.ask(question, default=True, console=self.console)

    def _record(self, result):
        if isinstance(result, SubTaskResult):
            self.results.append(result)
        return result

    def require_confirmation(self):
        if not self.confirm(self.CONFIRM_QUESTION):
            raise UserDeclined("Abort synchronisation.")

    def prepare_sync(self):
        self._record(self.filesystem_service.prepare(self.descriptor))

    def sync_filesystem(self, timeout: float):
        self.console.rule("Synchronising remote filesystem")
        files_path = self.settings.files_path

        self._record(self.filesystem_service.remove_staging(self.descriptor))
        self._record(self.filesystem_service.copy_remote_files(self.descriptor, timeout))
        self._record(self.filesystem_service.remove_local_files(files_path))
        self._record(
            self.filesystem_service.move_staging_into_place(self.descriptor, files_path, timeout)
        )

    def sync_database(self, timeout: float):
        self.console.rule("Synchronising remote database")

        self._record(self.database_service.dump_remote(self.descriptor, timeout))
        self._record(self.database_service.import_local(self.descriptor, timeout))
        self._record(self.database_service.remove_dump(self.descriptor))

    def create_symlinks(self, timeout: Optional[float] = None):
        if self.symlink_callback is not None:
            self.symlink_callback()
            return

        command = (
            f"cd {shlex.quote(self.settings.project_dir)} && "
            f"{self.settings.console} contao:symlinks {shlex.quote(self.settings.web_dir)}"
        )
        self._record(self.runner.run(command, "Created symlinks.", timeout=timeout))

    def run(self, timeout: Optional[float] = None, database_only: bool = False) -> int:
        timeout = timeout or self.settings.timeout

        try:
            self.require_confirmation()
        except UserDeclined as exc:
            self.console.print(f"[bold red]{escape(str(exc))}[/bold red]")
            self.logger.info("Synchronisation declined by operator.")
            return self.EXIT_DECLINED

        self.logger.info(
            "Synchronising from '%s' (%s) with a %ss timeout.",
            self.descriptor.name,
            self.descriptor.ssh_target,
            timeout,
        )
        start = self.clock()

        try:
            self.prepare_sync()
            if database_only:
                self.logger.info("Skipping filesystem sync (database only).")
            else:
                self.sync_filesystem(timeout)
            self.sync_database(timeout)
            self.create_symlinks(timeout)
        except CommandFailure as exc:
            self.failure = exc
            message = exc.report("Synchronisation", self.clock() - start)
            self.console.print(f"[bold red]Error:[/bold red] {escape(message)}")
            self.logger.error("Synchronisation failed at step: %s", exc.result.label)
            return self.EXIT_FAILED
        except KeyboardInterrupt:
            self.console.print("[bold red]Operation cancelled by user.[/bold red]")
            self.logger.info("Operation cancelled by user")
            return self.EXIT_DECLINED

        elapsed = self.clock() - start
        self.console.print(
            f"[bold green]Synchronisation completed in {elapsed:.2f} seconds.[/bold green]"
        )
        self.logger.info("Synchronisation completed in %.2f seconds.", elapsed)
        return self.EXIT_SUCCESS
