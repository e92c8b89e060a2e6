"""Error handling with friendly messages."""

from __future__ import annotations


class InstallWizardError(Exception):
    """Base exception for all installwizard errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(InstallWizardError):
    """Configuration error."""

    pass


class ConflictError(InstallWizardError):
    """Two contributions claim the same page or field id."""

    pass


class PageRedefinedError(ConflictError):
    """A page id is declared by more than one contribution."""

    def __init__(self, page_id: str, contrib_id: str) -> None:
        super().__init__(
            f"Page '{page_id}' is redefined by contrib '{contrib_id}'.",
            "Use pagePatches instead",
        )
        self.page_id = page_id
        self.contrib_id = contrib_id


class DuplicateFieldError(ConflictError):
    """A field id is declared more than once across all contributions."""

    def __init__(self, field_id: str, contrib_id: str) -> None:
        super().__init__(f"Field ID '{field_id}' is already defined (contrib '{contrib_id}').")
        self.field_id = field_id
        self.contrib_id = contrib_id


class LoadError(InstallWizardError):
    """Contribution document could not be read or parsed."""

    pass


class ProjectionError(InstallWizardError):
    """A single value could not be written into the output document."""

    pass


class PersistenceError(InstallWizardError):
    """Output or state write failed."""

    pass
