"""
doclinks: link-integrity engine for markdown documentation.
"""

from .batch import (
    BatchResult,
    CheckReport,
    check_links,
    normalize_links,
    process_directory_with_link_replacements,
    process_files_with_link_replacements,
    process_path_substitution,
    relocate_path,
)
from .config import EngineConfig, LinkProcessingConfig, load_config
from .models import (
    ApplyResult,
    ErrorLog,
    ErrorType,
    ParsedLink,
    Replacement,
    ReplacementKind,
)

__version__ = "0.1.0"

__all__ = [
    "ApplyResult",
    "BatchResult",
    "CheckReport",
    "EngineConfig",
    "ErrorLog",
    "ErrorType",
    "LinkProcessingConfig",
    "ParsedLink",
    "Replacement",
    "ReplacementKind",
    "check_links",
    "load_config",
    "normalize_links",
    "process_directory_with_link_replacements",
    "process_files_with_link_replacements",
    "process_path_substitution",
    "relocate_path",
]
