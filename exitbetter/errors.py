"""Exceptions raised by the questionnaire engine."""

from __future__ import annotations

from dataclasses import dataclass


class ExitBetterError(Exception):
    """Base class for engine errors surfaced to callers."""


class CatalogLoadError(ExitBetterError):
    """A catalog snapshot could not be read or parsed."""


@dataclass
class ValidationIssue:
    code: str
    message: str
    ref: str = ""

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "ref": self.ref}


class ConfigValidationError(ExitBetterError):
    """Configuration failed save-time validation."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = list(issues)
        summary = "; ".join(f"{i.code}: {i.message}" for i in self.issues[:3])
        if len(self.issues) > 3:
            summary += f" (+{len(self.issues) - 3} more)"
        super().__init__(summary or "invalid configuration")


class UnknownCompanyError(ExitBetterError):
    """No configuration exists for the requested company."""
