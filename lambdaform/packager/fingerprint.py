from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Generator, Iterable, Optional, Tuple

from ..errors import PackagingError

# Dependency caches and VCS metadata never ship and never affect the fingerprint
IGNORE_DIRS = frozenset({
    ".git",
    "node_modules",
    ".venv",
    "venv",
    "__pycache__",
    ".mypy_cache",
    ".pytest_cache",
})

IGNORE_FILES = frozenset({".DS_Store"})


def iter_files(root: str | Path, ignore: Optional[Iterable[str]] = None) -> Generator[Tuple[Path, Path], None, None]:
    """Yield (absolute, relative) paths under root in a stable, sorted order."""
    ignore_dirs = IGNORE_DIRS if ignore is None else frozenset(ignore)
    root_path = Path(root).resolve()
    for dirpath, dirnames, filenames in os.walk(root_path):
        # prune ignored dirs; sort in place so the walk order is deterministic
        dirnames[:] = sorted(d for d in dirnames if d not in ignore_dirs)
        for filename in sorted(filenames):
            if filename in IGNORE_FILES:
                continue
            p = Path(dirpath) / filename
            yield p, p.relative_to(root_path)


def _hash_file(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(8192)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


def fingerprint_directory(path: str | Path, ignore: Optional[Iterable[str]] = None) -> str:
    """
    Content hash of a directory.

    Each file contributes its relative POSIX path and the SHA-256 of its
    bytes, so renames and edits both change the result while timestamps
    and walk order do not.
    """
    root = Path(path)
    if not root.is_dir():
        raise PackagingError(f"Code directory not found: {root}")

    h = hashlib.sha256()
    try:
        for abs_path, rel_path in iter_files(root, ignore):
            h.update(rel_path.as_posix().encode("utf-8"))
            h.update(b"\0")
            h.update(_hash_file(abs_path).encode("ascii"))
            h.update(b"\n")
    except (OSError, UnicodeError) as e:
        # UnicodeError: file names that are not valid UTF-8
        raise PackagingError(f"Failed to fingerprint {root}: {e}") from e
    return h.hexdigest()
