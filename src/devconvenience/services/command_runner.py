"""Subprocess execution service for developer convenience commands."""

import os
import signal
import subprocess
import time
from typing import Dict, Optional

from devconvenience.errors import CommandFailure
from devconvenience.models import DEFAULT_TIMEOUT, SubTaskResult


class CommandRunner:
    """Runs one shell command at a time and reports a status line for it."""

    def __init__(self, logger, console, default_timeout: float = DEFAULT_TIMEOUT):
        self.logger = logger
        self.console = console
        self.default_timeout = default_timeout

    def run(
        self,
        command: str,
        label: str,
        timeout: Optional[float] = None,
        env: Optional[Dict[str, str]] = None,
        input_text: Optional[str] = None,
    ) -> SubTaskResult:
        effective_timeout = timeout if timeout is not None else self.default_timeout
        self.logger.debug("Executing (timeout %ss): %s", effective_timeout, command)

        process_env = None
        if env:
            process_env = dict(os.environ)
            process_env.update(env)

        started = time.monotonic()
        try:
            process = subprocess.Popen(
                command,
                shell=True,
                text=True,
                stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=process_env,
                start_new_session=True,
            )
        except OSError as exc:
            raise self._failure(
                label, command, f"Failed to execute command: {exc}", time.monotonic() - started
            ) from exc

        try:
            stdout, stderr = process.communicate(input=input_text, timeout=effective_timeout)
        except subprocess.TimeoutExpired as exc:
            self._kill_process_group(process)
            _, stderr = process.communicate()
            error_output = f"Command timed out after {effective_timeout}s."
            if stderr and stderr.strip():
                error_output = f"{error_output}\n{stderr.strip()}"
            raise self._failure(label, command, error_output, time.monotonic() - started) from exc

        duration = time.monotonic() - started

        if stdout:
            self.logger.debug("Command output: %s", stdout.strip())

        if process.returncode != 0:
            error_output = (stderr or "").strip()
            if not error_output:
                error_output = f"Command exited with status {process.returncode}."
            raise self._failure(label, command, error_output, duration)

        self.console.print(f"[green]✔[/green] {label}")
        return SubTaskResult(
            label=label,
            success=True,
            command_line=command,
            duration_seconds=duration,
        )

    def _failure(
        self, label: str, command: str, error_output: str, duration: float
    ) -> CommandFailure:
        self.console.print(f"[red]✗[/red] {label}")
        self.logger.debug("Command failed: %s\n%s", command, error_output)
        return CommandFailure(
            SubTaskResult(
                label=label,
                success=False,
                command_line=command,
                error_output=error_output,
                duration_seconds=duration,
            )
        )

    @staticmethod
    def _kill_process_group(process: subprocess.Popen):
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            return
