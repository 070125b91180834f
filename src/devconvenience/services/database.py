"""Database dump and import services for the remote sync."""

import os
import shlex
from typing import Dict, Optional

from devconvenience.models import DatabaseCredentials, EnvironmentDescriptor


class DatabaseService:
    """Copies the remote MySQL database into the local one through a dump file."""

    DUMP_FILE_NAME = "dump.sql"

    def __init__(self, runner, logger):
        self.runner = runner
        self.logger = logger

    def dump_path(self, descriptor: EnvironmentDescriptor) -> str:
        return os.path.join(descriptor.temp_directory, self.DUMP_FILE_NAME)

    @staticmethod
    def _client_arguments(credentials: DatabaseCredentials) -> str:
        return " ".join(
            [
                f"-h {shlex.quote(credentials.host)}",
                f"--port={shlex.quote(credentials.port)}",
                f"-u {shlex.quote(credentials.user)}",
                shlex.quote(credentials.name),
            ]
        )

    def build_dump_command(self, descriptor: EnvironmentDescriptor) -> str:
        remote = descriptor.database_remote
        remote_command = f"mysqldump {self._client_arguments(remote)}"
        if remote.password is not None:
            # The password arrives on stdin so it never shows up in a process listing.
            remote_command = f"IFS= read -r MYSQL_PWD && export MYSQL_PWD && {remote_command}"

        return (
            f"ssh {shlex.quote(descriptor.ssh_target)} {shlex.quote(remote_command)}"
            f" > {shlex.quote(self.dump_path(descriptor))}"
        )

    def build_import_command(self, descriptor: EnvironmentDescriptor) -> str:
        local = descriptor.database_local
        return f"mysql {self._client_arguments(local)} < {shlex.quote(self.dump_path(descriptor))}"

    @staticmethod
    def import_environment(descriptor: EnvironmentDescriptor) -> Optional[Dict[str, str]]:
        if descriptor.database_local.password is None:
            return None
        return {"MYSQL_PWD": descriptor.database_local.password}

    def dump_remote(self, descriptor: EnvironmentDescriptor, timeout: float):
        remote = descriptor.database_remote
        self.logger.info(
            "Dumping remote database %s from %s via %s.",
            remote.name,
            remote.host,
            descriptor.ssh_target,
        )
        input_text = None if remote.password is None else f"{remote.password}\n"
        return self.runner.run(
            self.build_dump_command(descriptor),
            "Fetch a MySQL dump from the remote server.",
            timeout=timeout,
            input_text=input_text,
        )

    def import_local(self, descriptor: EnvironmentDescriptor, timeout: float):
        self.logger.info("Importing dump into local database %s.", descriptor.database_local.name)
        return self.runner.run(
            self.build_import_command(descriptor),
            "Import dump from temporary file.",
            timeout=timeout,
            env=self.import_environment(descriptor),
        )

    def remove_dump(self, descriptor: EnvironmentDescriptor, timeout: Optional[float] = None):
        return self.runner.run(
            f"rm {shlex.quote(self.dump_path(descriptor))}",
            "Clean up temporary files.",
            timeout=timeout,
        )
