"""Path helpers shared by import resolution and diagnostic filtering."""

from __future__ import annotations

import os

SOURCE_EXTENSION = ".tact"
FUNC_EXTENSIONS = (".fc", ".func")
STDLIB_PREFIX = "@stdlib/"


def normalize_path(path: str) -> str:
    """Collapse ``.``/``..`` segments and unify separators for comparisons."""
    return os.path.normcase(os.path.normpath(path))


def has_source_extension(path: str) -> bool:
    return os.path.splitext(path)[1] == SOURCE_EXTENSION


def is_func_source(path: str) -> bool:
    return os.path.splitext(path)[1] in FUNC_EXTENSIONS


def resolve_import_path(importer: str, import_path: str) -> str | None:
    """Resolve an ``import "..."`` target relative to the importing file.

    Returns ``None`` for standard-library imports, which the compiler
    supplies itself.  A target without a recognised extension is a Tact
    source, so ``.tact`` is appended.
    """
    if import_path.startswith(STDLIB_PREFIX):
        return None
    candidate = os.path.join(os.path.dirname(importer), import_path)
    if not has_source_extension(candidate) and not is_func_source(candidate):
        candidate += SOURCE_EXTENSION
    return normalize_path(candidate)
