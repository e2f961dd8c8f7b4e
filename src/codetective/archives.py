"""Archive decoders that pull code files out of uploaded containers.

Each decoder yields ``ArchiveEntry`` values for regular files with a
recognized code extension. Entries larger than ``MAX_FILE_SIZE`` are
counted in ``skipped`` and dropped. Decoding stops once *limit* entries
have been admitted. A malformed container raises ``UploadError``; an
archive with no admissible entries simply yields nothing.
"""

from __future__ import annotations

import io
import logging
import os
import tarfile
import tempfile
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath, PureWindowsPath
from typing import Iterator

import py7zr

from codetective import config
from codetective.errors import UploadError
from codetective.file_filter import get_extension, is_code_extension

logger = logging.getLogger(__name__)


@dataclass
class ArchiveEntry:
    path: str
    extension: str
    content: str


def _decode_text(path: str, raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise UploadError(f"file '{path}' in archive is not valid UTF-8 text") from exc


class ArchiveDecoder(ABC):
    """Base class for container format decoders."""

    name = "archive"

    def __init__(self) -> None:
        self.skipped = 0

    def _admit(self, path: str, size: int) -> str | None:
        """Return the extension if an entry passes the filters, else None."""
        ext = get_extension(path)
        if not is_code_extension(ext):
            return None
        if size > config.MAX_FILE_SIZE:
            logger.warning("Skipping %s in %s archive: %d bytes", path, self.name, size)
            self.skipped += 1
            return None
        return ext

    @abstractmethod
    def decode(self, data: bytes, limit: int = config.MAX_NUM_FILES) -> Iterator[ArchiveEntry]:
        """Yield admissible entries from the archive bytes."""


class ZipDecoder(ArchiveDecoder):
    name = "zip"

    def decode(self, data: bytes, limit: int = config.MAX_NUM_FILES) -> Iterator[ArchiveEntry]:
        if limit <= 0:
            return
        try:
            zf = zipfile.ZipFile(io.BytesIO(data), "r")
        except (zipfile.BadZipFile, OSError) as exc:
            raise UploadError("failed to read uploaded zip archive") from exc

        admitted = 0
        with zf:
            for info in zf.infolist():
                if info.is_dir() or _zip_is_symlink(info):
                    continue
                ext = self._admit(info.filename, info.file_size)
                if ext is None:
                    continue

                try:
                    raw = zf.read(info)
                except (zipfile.BadZipFile, OSError, RuntimeError) as exc:
                    raise UploadError(
                        f"failed to read file '{info.filename}' from zip archive"
                    ) from exc
                yield ArchiveEntry(info.filename, ext, _decode_text(info.filename, raw))

                admitted += 1
                if admitted >= limit:
                    return


def _zip_is_symlink(info: zipfile.ZipInfo) -> bool:
    # Unix mode bits live in the high 16 bits of external_attr
    mode = info.external_attr >> 16
    return (mode & 0o170000) == 0o120000


class TarDecoder(ArchiveDecoder):
    name = "tar"
    mode = "r:"

    def decode(self, data: bytes, limit: int = config.MAX_NUM_FILES) -> Iterator[ArchiveEntry]:
        if limit <= 0:
            return
        try:
            tf = tarfile.open(fileobj=io.BytesIO(data), mode=self.mode)
        except (tarfile.TarError, OSError, EOFError) as exc:
            raise UploadError(f"failed to read uploaded {self.name} archive") from exc

        admitted = 0
        with tf:
            try:
                for member in tf:
                    if not member.isfile():
                        continue
                    ext = self._admit(member.name, member.size)
                    if ext is None:
                        continue

                    fobj = tf.extractfile(member)
                    if fobj is None:
                        continue
                    raw = fobj.read()
                    yield ArchiveEntry(member.name, ext, _decode_text(member.name, raw))

                    admitted += 1
                    if admitted >= limit:
                        return
            except (tarfile.TarError, OSError, EOFError) as exc:
                raise UploadError(f"failed to read entry from {self.name} archive") from exc


class GzipTarDecoder(TarDecoder):
    name = "tar.gz"
    mode = "r:gz"


class SevenZipDecoder(ArchiveDecoder):
    """7z decoder.

    Solid archives can only be decompressed sequentially from the start, so
    every entry is extracted before any filtering happens. Skipped entries
    are thrown away afterwards.
    """

    name = "7z"

    def decode(self, data: bytes, limit: int = config.MAX_NUM_FILES) -> Iterator[ArchiveEntry]:
        if limit <= 0:
            return
        with tempfile.TemporaryDirectory(prefix="codetective-7z-") as tmpdir:
            try:
                with py7zr.SevenZipFile(io.BytesIO(data), mode="r") as archive:
                    names = archive.getnames()
                    unsafe = [n for n in names if _is_unsafe_member(n)]
                    if unsafe:
                        raise UploadError(
                            f"7z archive contains unsafe path '{unsafe[0]}'"
                        )
                    archive.extractall(path=tmpdir)
            except py7zr.PasswordRequired as exc:
                raise UploadError("failed to decode from 7z archive, password issue?") from exc
            except (
                py7zr.Bad7zFile,
                py7zr.DecompressionError,
                py7zr.UnsupportedCompressionMethodError,
                OSError,
                EOFError,
            ) as exc:
                raise UploadError("failed to read uploaded 7z archive") from exc

            admitted = 0
            for name in names:
                full = os.path.join(tmpdir, name)
                if os.path.islink(full) or not os.path.isfile(full):
                    continue
                ext = self._admit(name, os.path.getsize(full))
                if ext is None:
                    continue

                with open(full, "rb") as f:
                    raw = f.read()
                yield ArchiveEntry(name, ext, _decode_text(name, raw))

                admitted += 1
                if admitted >= limit:
                    return


def _is_unsafe_member(name: str) -> bool:
    # members must stay inside the extraction directory
    path = PurePosixPath(name.replace("\\", "/"))
    return path.is_absolute() or ".." in path.parts or bool(PureWindowsPath(name).drive)


def decoder_for(filename: str) -> ArchiveDecoder | None:
    """Pick a decoder by file name, or None if it is not a supported archive."""
    ext = get_extension(filename)
    if ext == ".zip":
        return ZipDecoder()
    if ext == ".tar":
        return TarDecoder()
    if ext in (".gz", ".tgz"):
        return GzipTarDecoder()
    if ext == ".7z":
        return SevenZipDecoder()
    return None
