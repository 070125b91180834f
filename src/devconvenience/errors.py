"""Domain errors for developer convenience commands."""


class ConvenienceError(RuntimeError):
    """Base error for all command failures."""


class ConfigError(ConvenienceError):
    """Raised when environment or project configuration is missing or invalid."""


class CommandFailure(ConvenienceError):
    """Raised when an external command exits non-zero or times out."""

    def __init__(self, result):
        self.result = result
        message = f"Command failed: {result.label}"
        if result.error_output:
            message = f"{message}\n{result.error_output}"
        super().__init__(message)

    @property
    def command_line(self) -> str:
        return self.result.command_line

    @property
    def error_output(self) -> str:
        return self.result.error_output or ""

    def report(self, action: str, elapsed: float) -> str:
        return (
            f"{action} failed after {elapsed:.2f} seconds.\n\n"
            f"Message:\n{self.error_output.strip()}\n\n"
            f"Command:\n{self.command_line.strip()}"
        )


class UserDeclined(ConvenienceError):
    """Raised when the operator declines a destructive action."""
