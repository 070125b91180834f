"""Filesystem sync steps for the remote sync."""

import os
import shlex
from typing import Optional

from devconvenience.models import EnvironmentDescriptor


class FileSystemService:
    """Replaces the local files directory with the remote shared files."""

    STAGING_NAME = "files"

    def __init__(self, runner, logger):
        self.runner = runner
        self.logger = logger

    def staging_path(self, descriptor: EnvironmentDescriptor) -> str:
        return os.path.join(descriptor.temp_directory, self.STAGING_NAME)

    def prepare(self, descriptor: EnvironmentDescriptor, timeout: Optional[float] = None):
        return self.runner.run(
            f"mkdir -p {shlex.quote(descriptor.temp_directory)}",
            "Created temporary sync directory.",
            timeout=timeout,
        )

    def remove_staging(self, descriptor: EnvironmentDescriptor, timeout: Optional[float] = None):
        return self.runner.run(
            f"rm -rf {shlex.quote(self.staging_path(descriptor))}",
            "Removed existing synced-files folder.",
            timeout=timeout,
        )

    def copy_remote_files(self, descriptor: EnvironmentDescriptor, timeout: float):
        remote_source = f"{descriptor.ssh_target}:{descriptor.remote_directory}/shared/files"
        self.logger.info("Copying %s into %s.", remote_source, self.staging_path(descriptor))
        return self.runner.run(
            f"scp -r {shlex.quote(remote_source)} {shlex.quote(self.staging_path(descriptor))}",
            "Synchronised files to a new synced-files folder.",
            timeout=timeout,
        )

    def remove_local_files(self, files_path: str, timeout: Optional[float] = None):
        return self.runner.run(
            f"rm -rf {shlex.quote(files_path)}",
            "Removed existing files folder.",
            timeout=timeout,
        )

    def move_staging_into_place(
        self, descriptor: EnvironmentDescriptor, files_path: str, timeout: float
    ):
        return self.runner.run(
            f"mv {shlex.quote(self.staging_path(descriptor))} {shlex.quote(files_path)}",
            "Renamed synced-files folder to files.",
            timeout=timeout,
        )
