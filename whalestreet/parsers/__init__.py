# Parsers package
from .combined_code import (
    DATA_SCRIPT_TYPES,
    FragmentSet,
    build_preview_document,
    format_code_for_iteration,
    parse_combined_code,
)
from .response_parser import extract_content, parse_model_reply

__all__ = [
    "DATA_SCRIPT_TYPES",
    "FragmentSet",
    "build_preview_document",
    "format_code_for_iteration",
    "parse_combined_code",
    "extract_content",
    "parse_model_reply",
]
