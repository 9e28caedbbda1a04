"""Custom exceptions for sbomqs."""

from typing import Optional


class SbomqsError(Exception):
    """Base exception for all sbomqs operations."""


class ConfigurationError(SbomqsError):
    """Raised when a scoring config file or filter is invalid."""


class UnsupportedFormatError(SbomqsError):
    """Raised when no supported SBOM specification matches the input."""


class SBOMParseError(SbomqsError):
    """Raised when an input matched a format but could not be decoded as it."""

    def __init__(self, message: str, spec: Optional[str] = None, file_format: Optional[str] = None) -> None:
        super().__init__(message)
        self.spec = spec
        self.file_format = file_format

    def __str__(self) -> str:
        message = super().__str__()
        if self.spec and self.file_format:
            return f"{message} (spec={self.spec}, format={self.file_format})"
        return message


class FileProcessingError(SbomqsError):
    """Raised when file operations fail."""


class FetchError(SbomqsError):
    """Raised when an SBOM cannot be downloaded."""


class CheckEvaluationError(SbomqsError):
    """Raised when a scoring check cannot be evaluated."""


class PolicyError(SbomqsError):
    """Raised when a policy file or inline policy definition is invalid."""
