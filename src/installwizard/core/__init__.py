"""installwizard core: spec composition and output projection."""

from installwizard.core.cache import UnifiedSpecCache
from installwizard.core.config import ConfigResolver
from installwizard.core.errors import (
    ConfigError,
    ConflictError,
    DuplicateFieldError,
    InstallWizardError,
    LoadError,
    PageRedefinedError,
    PersistenceError,
    ProjectionError,
)
from installwizard.core.events import EventBus, build_envelope, get_event_bus
from installwizard.core.json_value import JsonKind, convert_value, json_kind
from installwizard.core.loader import LoadResult, SpecLoader, parse_contribution
from installwizard.core.logging import VerbosityLevel, get_logger, set_verbosity
from installwizard.core.merge import MergeResult, merge_contributions, merge_template
from installwizard.core.models import (
    ContributionSpec,
    Field,
    FieldKind,
    Page,
    PagePatch,
    UnifiedSpec,
    WizardState,
)
from installwizard.core.projection import (
    ProjectionResult,
    build_field_path_index,
    parse_path,
    project,
)
from installwizard.core.service import WizardService
from installwizard.core.state import WizardStateStore

__all__ = [
    # Model
    "ContributionSpec",
    "Field",
    "FieldKind",
    "Page",
    "PagePatch",
    "UnifiedSpec",
    "WizardState",
    # JSON
    "JsonKind",
    "convert_value",
    "json_kind",
    # Merge
    "MergeResult",
    "merge_contributions",
    "merge_template",
    "UnifiedSpecCache",
    # Projection
    "ProjectionResult",
    "build_field_path_index",
    "parse_path",
    "project",
    # Collaborators
    "LoadResult",
    "SpecLoader",
    "parse_contribution",
    "WizardStateStore",
    "WizardService",
    # Config / logging / events
    "ConfigResolver",
    "VerbosityLevel",
    "get_logger",
    "set_verbosity",
    "EventBus",
    "build_envelope",
    "get_event_bus",
    # Errors
    "InstallWizardError",
    "ConfigError",
    "ConflictError",
    "DuplicateFieldError",
    "PageRedefinedError",
    "LoadError",
    "ProjectionError",
    "PersistenceError",
]
