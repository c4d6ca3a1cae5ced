"""Zip archive handling: locate the CSV entry on import, build the archive on export."""

import io
import logging
import zipfile
from typing import IO

from prices.errors import InvalidArchive, NoDataFile

logger = logging.getLogger(__name__)

DATA_FILE_SUFFIXES = (".csv",)


def _select_entry(archive: zipfile.ZipFile, data_file: str | None) -> zipfile.ZipInfo:
    if data_file is not None:
        try:
            return archive.getinfo(data_file)
        except KeyError:
            raise NoDataFile(f"No {data_file} file found in the archive") from None

    for info in archive.infolist():
        if info.is_dir():
            continue
        if info.filename.lower().endswith(DATA_FILE_SUFFIXES):
            return info
    raise NoDataFile("No .csv file found in the archive")


def open_data_file(payload: bytes, data_file: str | None = None) -> IO[bytes]:
    """Open the data entry of a zip archive held in memory.

    Args:
        payload: Raw archive bytes.
        data_file: Exact entry name to read. When None, the first entry whose
            name ends in ``.csv`` (case-insensitive) is used.

    Returns:
        A readable binary stream over that one entry; other entries are ignored.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(payload))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
        raise InvalidArchive(f"Invalid zip file: {e}") from e

    info = _select_entry(archive, data_file)
    logger.debug("Reading %s (%d bytes) from archive", info.filename, info.file_size)
    try:
        return archive.open(info)
    except (zipfile.BadZipFile, NotImplementedError, RuntimeError) as e:
        # RuntimeError: encrypted entry; NotImplementedError: unsupported compression
        raise InvalidArchive(f"Cannot open {info.filename}: {e}") from e


def build_archive(filename: str, content: bytes) -> bytes:
    """Build a single-entry zip archive in memory."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(filename, content)
    return buffer.getvalue()
