"""Remote image optimization pipeline."""

import os
import shlex
import time
from typing import Callable, Dict, List, Optional

from rich.markup import escape
from rich.prompt import Confirm

from devconvenience.errors import CommandFailure, ConfigError, UserDeclined
from devconvenience.errors_catalog import actionable_error
from devconvenience.models import ImageOptimTarget, Settings, SubTaskResult


def list_directories(root: str) -> List[str]:
    """Returns the root followed by every nested directory, sorted per level."""
    paths = [root]
    for current_root, dirs, _ in os.walk(root):
        dirs.sort()
        for directory in dirs:
            paths.append(os.path.join(current_root, directory))
    return paths


class ImageOptimizer:
    """Compresses the JPEG and PNG images of a remote `shared/files` directory."""

    EXIT_SUCCESS = 0
    EXIT_DECLINED = 1
    EXIT_FAILED = 2

    CONFIRM_QUESTION = (
        "Are you sure you want to optimize all JPEG & PNG images? "
        "This will replace the original images!\n\n"
        "A backup is created in the remote's shared directory."
    )

    def __init__(
        self,
        settings: Settings,
        target: ImageOptimTarget,
        runner,
        console,
        logger,
        confirm: Optional[Callable[[str], bool]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.target = target
        self.runner = runner
        self.console = console
        self.logger = logger
        self.confirm = confirm or self._ask
        self.clock = clock
        self.results: List[SubTaskResult] = []
        self.failure: Optional[CommandFailure] = None

    def _ask(self, question: str) -> bool:
        return Confirm.ask(question, default=True, console=self.console)

    def _run(self, command: str, label: str, env: Optional[Dict[str, str]] = None):
        result = self.runner.run(command, label, env=env)
        if isinstance(result, SubTaskResult):
            self.results.append(result)
        return result

    def require_confirmation(self):
        if not self.confirm(self.CONFIRM_QUESTION):
            raise UserDeclined("Abort command.")

    @property
    def work_dir(self) -> str:
        return self.settings.image_optim_dir

    def check_for_imagemin(self):
        modules_path = self.settings.project_path("node_modules", "imagemin")
        if not os.path.exists(modules_path):
            raise ConfigError(actionable_error("imagemin_not_found", path=modules_path))

    def get_files_from_remote(self):
        if os.path.exists(self.target.temp_directory):
            self._run(
                f"rm -rf {shlex.quote(self.target.temp_directory)}", "Removed previous folder."
            )

        if not os.path.exists(self.work_dir):
            self._run(f"mkdir -p {shlex.quote(self.work_dir)}", "Created temporary folder.")

        remote_source = f"{self.target.ssh_target}:{self.target.remote_directory}/shared/files"
        self._run(
            f"scp -r {shlex.quote(remote_source)} {shlex.quote(self.target.temp_directory)}",
            "Remote files have been downloaded and are ready to be optimized!",
        )

    def node_environment(self) -> Dict[str, str]:
        # Compressor modules resolve from the project, not from the script location.
        return {"NODE_PATH": self.settings.project_path("node_modules")}

    def optimize_images(self):
        paths = list_directories(self.target.temp_directory)
        node_env = self.node_environment()
        self.logger.info("Optimizing images in %s directories.", len(paths))
        for path in paths:
            self.logger.debug("Queued directory: %s", path)

        for path in paths:
            command = " ".join(
                [
                    self.settings.node_binary,
                    shlex.quote(self.settings.compressor_script_path),
                    shlex.quote(path),
                    shlex.quote(str(self.settings.jpeg_quality)),
                    shlex.quote(str(self.settings.png_quality)),
                    shlex.quote(str(self.settings.png_speed)),
                ]
            )
            self._run(
                command,
                f'Optimize JPEG & PNG images in directory "{path}"',
                env=node_env,
            )

    def create_remote_backup(self):
        shared = f"{self.target.remote_directory}/shared"
        backup = f"{shared}/backup_{int(self.clock())}"
        remote_command = f"cp -r {shlex.quote(shared + '/files')} {shlex.quote(backup)}"
        self._run(
            f"ssh {shlex.quote(self.target.ssh_target)} {shlex.quote(remote_command)}",
            "Remote backup has been created.",
        )

    def move_new_files_to_remote(self):
        remote_destination = f"{self.target.ssh_target}:{self.target.remote_directory}/shared"
        self._run(
            f"scp -r {shlex.quote(self.target.temp_directory)} {shlex.quote(remote_destination)}",
            "Files have been uploaded.",
        )

    def resync_files_on_remote(self):
        current = f"{self.target.remote_directory}/current/"
        remote_command = f"cd {shlex.quote(current)}; {self.target.remote_console} contao:filesync"
        self._run(
            f"ssh {shlex.quote(self.target.ssh_target)} {shlex.quote(remote_command)}",
            "Remote filesync invoked.",
        )

    def remove_temporary_folder(self):
        if os.path.exists(self.work_dir):
            self._run(f"rm -rf {shlex.quote(self.work_dir)}", "Removed temporary folder.")

    def run(self) -> int:
        try:
            self.require_confirmation()
        except UserDeclined as exc:
            self.console.print(f"[bold red]{escape(str(exc))}[/bold red]")
            self.logger.info("Image optimization declined by operator.")
            return self.EXIT_DECLINED

        self.check_for_imagemin()
        start = self.clock()

        try:
            self.get_files_from_remote()
            self.optimize_images()
            self.create_remote_backup()
            self.move_new_files_to_remote()
            self.resync_files_on_remote()
            self.remove_temporary_folder()
        except CommandFailure as exc:
            self.failure = exc
            message = exc.report("Optimization", self.clock() - start)
            self.console.print(f"[bold red]Error:[/bold red] {escape(message)}")
            self.logger.error("Image optimization failed at step: %s", exc.result.label)
            return self.EXIT_FAILED

        elapsed = self.clock() - start
        self.console.print(
            f"[bold green]Optimization completed in {elapsed:.2f} seconds.[/bold green]"
        )
        self.logger.info("Image optimization completed in %.2f seconds.", elapsed)
        return self.EXIT_SUCCESS
