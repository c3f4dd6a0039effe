"""Parsing utilities for archmap."""

from parse.ast_imports import extract_imports
from parse.errors import ExtractionError
from parse.extract import extract_dependencies
from parse.js_exports import extract_script_members, extract_script_reexports
from parse.js_imports import extract_script_imports
from parse.resolution import DependencyResolver
from parse.treesitter_symbols import extract_api_members_treesitter

__all__ = [
    "DependencyResolver",
    "ExtractionError",
    "extract_api_members_treesitter",
    "extract_dependencies",
    "extract_imports",
    "extract_script_imports",
    "extract_script_members",
    "extract_script_reexports",
]
