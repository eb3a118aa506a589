"""
Path Utils
==========
Path normalisation and workspace-relative conversion helpers.

Responsibilities:
    - Normalise fixture-relative paths to forward slashes
    - Reject absolute paths and paths escaping the fixture root
    - Resolve a relative path against the fixture root
"""
import os
import posixpath
from typing import Optional


def normalize_relative_path(rel_path: str) -> Optional[str]:
    """
    Return the normalised form of a fixture-relative path, or None if the
    path is empty, absolute, or climbs out of the root.
    """
    if not rel_path or not rel_path.strip():
        return None
    posix = rel_path.replace("\\", "/")
    if posix.startswith("/") or os.path.isabs(rel_path):
        return None
    normalized = posixpath.normpath(posix)
    if normalized in (".", "") or normalized == ".." or normalized.startswith("../"):
        return None
    return normalized


def join_within(root: str, rel_path: str) -> Optional[str]:
    """Join ``rel_path`` under ``root``; None if the result would leave root."""
    normalized = normalize_relative_path(rel_path)
    if normalized is None:
        return None
    abs_root = os.path.abspath(root)
    abs_path = os.path.normpath(os.path.join(abs_root, *normalized.split("/")))
    if os.path.commonpath([abs_root, abs_path]) != abs_root:
        return None
    return abs_path
