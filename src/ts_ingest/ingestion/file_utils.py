"""
Shared file utilities for the ingestion module.

Import files are frequently shipped compressed, so every format opens its
input through open_import_file().
"""

import gzip
from pathlib import Path
from typing import IO, Union

GZIP_MAGIC = b"\x1f\x8b"


def is_gzip_file(path: Path) -> bool:
    """True if the file has a .gz suffix or starts with the gzip magic bytes."""
    if path.suffix.lower() == ".gz":
        return True
    with open(path, "rb") as f:
        return f.read(2) == GZIP_MAGIC


def open_import_file(
    file_path: Union[str, Path],
    encoding: str = "utf-8",
    errors: str = "replace",
) -> IO[str]:
    """
    Open an import file in text mode, decompressing gzip transparently.

    Newline translation is disabled so the csv module sees the raw line
    endings of quoted multi-line cells. Undecodable bytes are replaced
    with U+FFFD instead of failing the whole file.

    Args:
        file_path: Path to the file
        encoding: Text encoding (default: utf-8)
        errors: Decoding error handler (default: replace)

    Returns:
        Open file handle (text mode)

    Raises:
        FileNotFoundError: If file doesn't exist
        PermissionError: If file cannot be read
        gzip.BadGzipFile: If file has .gz extension but is not valid gzip
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    if is_gzip_file(path):
        return gzip.open(path, "rt", encoding=encoding, errors=errors, newline="")
    return open(path, "r", encoding=encoding, errors=errors, newline="")
