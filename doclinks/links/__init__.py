from .applier import apply_replacements, process_file_replacement, replace_link_on_line
from .processor import (
    ExistenceCheckResult,
    check_bad_link_format,
    generate_existence_check_replacements,
    generate_normalization_replacements,
    generate_path_substitution_replacements,
    should_skip_link,
)
from .resolver import (
    detect_dataset_root,
    resolve_markdown_path,
    resolve_markdown_path_auto,
    try_resolve_path_variants,
)
from .utils import (
    classify_link_type,
    extract_anchor,
    is_external_link,
    normalize_link_slashes,
    split_link_parts,
    split_lines,
    strip_anchor,
)

__all__ = [
    "ExistenceCheckResult",
    "apply_replacements",
    "check_bad_link_format",
    "classify_link_type",
    "detect_dataset_root",
    "extract_anchor",
    "generate_existence_check_replacements",
    "generate_normalization_replacements",
    "generate_path_substitution_replacements",
    "is_external_link",
    "normalize_link_slashes",
    "process_file_replacement",
    "replace_link_on_line",
    "resolve_markdown_path",
    "resolve_markdown_path_auto",
    "should_skip_link",
    "split_link_parts",
    "split_lines",
    "strip_anchor",
    "try_resolve_path_variants",
]
