"""Shared domain models for developer convenience commands."""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_TIMEOUT = 60
BUNDLED_COMPRESSOR_SCRIPT = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), "resources", "imagemin.js"
)


@dataclass(frozen=True)
class DatabaseCredentials:
    """Connection settings for one MySQL database."""

    host: str
    user: str
    password: Optional[str]
    port: str
    name: str
    source: str = ""


@dataclass(frozen=True)
class EnvironmentDescriptor:
    """Resolved SSH target and database pair for one sync run."""

    name: str
    host: str
    user: str
    remote_directory: str
    temp_directory: str
    database_remote: DatabaseCredentials
    database_local: DatabaseCredentials
    parameters_environment: str = "dev"

    @property
    def ssh_target(self) -> str:
        return f"{self.user}@{self.host}"


@dataclass(frozen=True)
class ImageOptimTarget:
    """Remote installation whose shared files get optimized."""

    name: str
    host: str
    user: str
    remote_directory: str
    temp_directory: str
    remote_console: str

    @property
    def ssh_target(self) -> str:
        return f"{self.user}@{self.host}"


@dataclass(frozen=True)
class SubTaskResult:
    """Outcome of a single external command."""

    label: str
    success: bool
    command_line: str
    error_output: Optional[str] = None
    duration_seconds: float = 0.0


@dataclass(frozen=True)
class MigrationResult:
    """Value returned by an update unit after it ran."""

    successful: bool
    message: str = ""


@dataclass(frozen=True)
class Settings:
    """Project-level settings passed explicitly into every service."""

    project_dir: str
    manifest_file: str = ".mage.yml"
    console: str = "vendor/bin/contao-console"
    web_dir: str = "web"
    files_dir: str = "files"
    timeout: int = DEFAULT_TIMEOUT
    node_binary: str = "node"
    compressor_script: Optional[str] = None
    jpeg_quality: int = 85
    png_quality: str = "65-80"
    png_speed: int = 7
    update_units: Tuple[str, ...] = field(default_factory=tuple)
    schema_installer: Optional[str] = None

    def project_path(self, *parts: str) -> str:
        return os.path.join(self.project_dir, *parts)

    @property
    def manifest_path(self) -> str:
        return self.project_path(self.manifest_file)

    @property
    def var_dir(self) -> str:
        return self.project_path("var")

    @property
    def sync_dir(self) -> str:
        return os.path.join(self.var_dir, "sync")

    @property
    def image_optim_dir(self) -> str:
        return os.path.join(self.var_dir, "imgOpt")

    @property
    def files_path(self) -> str:
        return self.project_path(self.files_dir)

    @property
    def compressor_script_path(self) -> str:
        if self.compressor_script:
            return self.project_path(self.compressor_script)
        return BUNDLED_COMPRESSOR_SCRIPT
