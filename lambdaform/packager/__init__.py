"""
Code packaging: deterministic zip archives and directory fingerprints.
"""

from .archive import PackagedArtifact, archive_directory, pack, split_code_location
from .fingerprint import IGNORE_DIRS, fingerprint_directory

__all__ = [
    "PackagedArtifact",
    "archive_directory",
    "pack",
    "split_code_location",
    "fingerprint_directory",
    "IGNORE_DIRS",
]
