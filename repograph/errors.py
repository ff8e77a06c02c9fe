"""Errors raised when an analysis run cannot continue."""

from typing import Literal

ErrorCode = Literal[
    "NOT_A_DIRECTORY",
    "INVALID_CONFIG",
    "ANALYSIS_FAILED",
    "INVALID_FORMAT",
    "FILE_WRITE_ERROR",
    "UNKNOWN_ERROR",
]


class RepographError(Exception):
    """Base error carrying a machine-readable code and an optional hint."""

    def __init__(self, message: str, code: ErrorCode = "UNKNOWN_ERROR", suggestion: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.suggestion = suggestion

    def format(self) -> str:
        text = f"Error [{self.code}]: {self.message}"
        if self.suggestion:
            text += f"\n\nSuggestion: {self.suggestion}"
        return text


class RootNotFoundError(RepographError):
    def __init__(self, path: str):
        super().__init__(
            f"Repository root is not a readable directory: {path}",
            "NOT_A_DIRECTORY",
            "Check the path and that you have permission to list it.",
        )
        self.path = path


class ConfigError(RepographError):
    def __init__(self, message: str, suggestion: str | None = None):
        super().__init__(message, "INVALID_CONFIG", suggestion)


class GraphBuildError(RepographError):
    def __init__(self, message: str):
        super().__init__(message, "ANALYSIS_FAILED")


class ExportFormatError(RepographError):
    def __init__(self, format: str, supported: list[str]):
        super().__init__(
            f"Unknown export format: {format}",
            "INVALID_FORMAT",
            f"Use one of: {', '.join(supported)}",
        )
        self.format = format


class OutputWriteError(RepographError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to write {path}: {reason}", "FILE_WRITE_ERROR")
        self.path = path
