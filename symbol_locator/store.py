"""Filesystem symbol-store helpers used for lookups and write-back."""
from __future__ import annotations

import os
import shutil
import uuid

from .console import warn
from .result import ResolutionResult


def store_path(root: str, relative_path: str) -> str:
    """Join a store root with a '/' separated relative path."""
    return os.path.join(root, *relative_path.split("/"))


def copy_into_store(result: ResolutionResult, root: str) -> bool:
    """
    Copy a resolved file into another store root under the same relative path.

    Check-then-write: an existing file is left alone. The copy goes to a
    uniquely named sibling first and is renamed into place, so concurrent
    writers of the same entry both succeed.

    Returns:
        True if a copy was written, False if the entry already existed.

    Raises:
        OSError: The copy failed (permissions, disk full, ...).
    """
    target = store_path(root, result.relative_path)
    if os.path.exists(target):
        return False
    if os.path.abspath(target) == result.file:
        return False

    os.makedirs(os.path.dirname(target), exist_ok=True)
    staging = f"{target}.{uuid.uuid4().hex[:8]}.tmp"
    try:
        shutil.copyfile(result.file, staging)
        if os.path.exists(target):
            # Another writer got there first
            return False
        os.replace(staging, target)
    finally:
        if os.path.exists(staging):
            os.unlink(staging)
    return True


def cascade_into(result: ResolutionResult, roots) -> int:
    """
    Write a resolved file back into every root that lacks it.

    Failures are reported as warnings and skipped.

    Returns:
        Number of copies written.
    """
    written = 0
    for root in roots:
        try:
            if copy_into_store(result, root):
                written += 1
        except OSError as e:
            warn(f"Could not cache {result.relative_path} in {root}: {e}")
    return written
