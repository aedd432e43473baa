from __future__ import annotations

import logging
import os
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from ..errors import PackagingError
from ..ids import artifact_file_name
from .fingerprint import fingerprint_directory, iter_files

logger = logging.getLogger(__name__)

CodeLocation = Union[str, Sequence[str]]

# Fixed entry timestamp keeps archive bytes reproducible
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)
FILE_MODE = 0o100644


@dataclass(frozen=True)
class PackagedArtifact:
    zip_bytes: bytes
    fingerprint: str
    path: str = ""          # temp file the archive was written to


def split_code_location(code: CodeLocation) -> tuple[str, list[str]]:
    """Return (code_dir, aux_files) for a path or a [dir, *aux] sequence."""
    if isinstance(code, (str, os.PathLike)):
        return str(code), []
    items = [str(c) for c in code]
    if not items:
        raise PackagingError("Code location is empty")
    return items[0], items[1:]


def _write_entry(zf: zipfile.ZipFile, arcname: str, source: Path) -> None:
    info = zipfile.ZipInfo(arcname, date_time=ZIP_EPOCH)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = FILE_MODE << 16
    with open(source, "rb") as f:
        zf.writestr(info, f.read())


def archive_directory(path: str | Path, aux_files: Iterable[str], output_path: str | Path) -> str:
    """
    Zip a code directory into output_path.

    Auxiliary files (runtime shims) are added at the archive root under
    their base name and win over a same-named file from the directory.
    """
    root = Path(path)
    if not root.is_dir():
        raise PackagingError(f"Code directory not found: {root}")

    aux = [Path(a) for a in aux_files]
    aux_names = {a.name for a in aux}
    try:
        with zipfile.ZipFile(output_path, "w") as zf:
            for abs_path, rel_path in iter_files(root):
                arcname = rel_path.as_posix()
                if arcname in aux_names:
                    continue
                _write_entry(zf, arcname, abs_path)
            for shim in sorted(aux, key=lambda p: p.name):
                _write_entry(zf, shim.name, shim)
    except (OSError, UnicodeError) as e:
        raise PackagingError(f"Failed to archive {root}: {e}") from e
    return str(output_path)


def pack(code: CodeLocation, instance: str, output_dir: Optional[str] = None) -> PackagedArtifact:
    """
    Package a code location for upload.

    The archive lands in a uniquely named file in the temp directory and is
    read back into memory; removing the file is left to the caller.
    """
    code_dir, aux_files = split_code_location(code)
    fingerprint = fingerprint_directory(code_dir)

    out_dir = output_dir or tempfile.gettempdir()
    output_path = os.path.join(out_dir, artifact_file_name(instance))
    archive_directory(code_dir, aux_files, output_path)

    try:
        with open(output_path, "rb") as f:
            zip_bytes = f.read()
    except OSError as e:
        raise PackagingError(f"Failed to read archive {output_path}: {e}") from e

    logger.debug("Packed %s (%d bytes, fingerprint %s)", code_dir, len(zip_bytes), fingerprint[:12])
    return PackagedArtifact(zip_bytes=zip_bytes, fingerprint=fingerprint, path=output_path)
