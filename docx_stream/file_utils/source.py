"""Turn the caller's document source into a single in-memory byte buffer.

A DOCX package is a ZIP archive whose central directory sits at the end of the file, so nothing
can be extracted until the whole source has been read. This module does that read, once, for
every kind of source the extraction API accepts.
"""

from __future__ import annotations

import os
from tempfile import SpooledTemporaryFile
from typing import IO, Any, Iterable, Optional, Union

from typing_extensions import TypeAlias

from docx_stream.errors import SourceReadError
from docx_stream.logger import logger

FileSource: TypeAlias = Union[bytes, bytearray, memoryview, IO[bytes], Iterable[bytes]]


def read_source_bytes(
    filename: Optional[Union[str, os.PathLike[str]]] = None, file: Optional[FileSource] = None
) -> bytes:
    """Materialize the document identified by exactly one of `filename` or `file` as bytes.

    Raises `FileNotFoundError` when `filename` names no file and `SourceReadError` for any other
    I/O failure.
    """
    if filename is not None:
        return read_file_bytes(filename)
    if file is None:
        raise ValueError("one of filename or file must be specified")
    return convert_to_bytes(file)


def read_file_bytes(filename: Union[str, os.PathLike[str]]) -> bytes:
    path = os.fspath(filename)
    if not os.path.isfile(path):
        raise FileNotFoundError(f"no such file: {repr(path)}")
    try:
        with open(path, "rb") as f:
            blob = f.read()
    except OSError as e:
        raise SourceReadError(f"failed to read {repr(path)}: {e}") from e
    logger.debug("read %d bytes from %s", len(blob), path)
    return blob


def convert_to_bytes(file: FileSource) -> bytes:
    """Extract the bytes from `file` without preventing it from being read again later.

    Accepts a bytes-like object (returned as `bytes`), a binary file-like object (read from the
    start, then rewound when seekable), or an iterable of byte chunks (a streamed body).
    """
    if isinstance(file, bytes):
        return file

    if isinstance(file, (bytearray, memoryview)):
        return bytes(file)

    try:
        if isinstance(file, SpooledTemporaryFile) or hasattr(file, "read"):
            return _read_file_like(file)  # pyright: ignore[reportArgumentType]

        if isinstance(file, (str, os.PathLike)):
            raise ValueError("a path must be passed as `filename`, not as `file`")

        return _join_chunks(file)
    except OSError as e:
        raise SourceReadError(f"failed to read document source: {e}") from e


def _read_file_like(file: IO[bytes] | SpooledTemporaryFile[bytes]) -> bytes:
    seekable = _is_seekable(file)
    if seekable:
        file.seek(0)
    blob = file.read()
    if seekable:
        file.seek(0)
    if not isinstance(blob, (bytes, bytearray)):
        raise ValueError("file must be opened in binary mode")
    return bytes(blob)


def _is_seekable(file: Any) -> bool:
    # -- SpooledTemporaryFile has no `.seekable()` before Python 3.11 but can always seek --
    if isinstance(file, SpooledTemporaryFile):
        return True
    seekable = getattr(file, "seekable", None)
    return bool(seekable()) if callable(seekable) else False


def _join_chunks(chunks: Iterable[Any]) -> bytes:
    parts: list[bytes] = []
    for chunk in chunks:
        if not isinstance(chunk, (bytes, bytearray, memoryview)):
            raise ValueError(f"byte stream produced a non-bytes chunk: {type(chunk).__name__}")
        parts.append(bytes(chunk))
    return b"".join(parts)
