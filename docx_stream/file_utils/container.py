from __future__ import annotations

import io
import re
import zipfile
import zlib
from typing import Optional, Pattern, Union

from docx.oxml.parser import parse_xml
from lxml import etree

from docx_stream.errors import InvalidContainerError
from docx_stream.logger import logger
from docx_stream.partition.utils.constants import (
    MAIN_DOCUMENT_PART,
    PACKAGE_RELS_PART,
    RT_OFFICE_DOCUMENT,
)
from docx_stream.utils import lazyproperty, natural_sort_key

PartPattern = Union[str, Pattern[str]]

_PR_NSMAP = {"pr": "http://schemas.openxmlformats.org/package/2006/relationships"}
_office_document_targets = etree.XPath(
    "/pr:Relationships/pr:Relationship[@Type=$rel_type]/@Target", namespaces=_PR_NSMAP
)


class DocxContainer:
    """Read-only access to the parts of a DOCX package held in memory.

    A part that is not present reads as `None`; only an archive that cannot be read at all (or an
    entry that cannot be decompressed) raises, as `InvalidContainerError`. Part names are listed in
    natural order, so "word/header2.xml" comes before "word/header10.xml".

    Use as a context manager, or call `.close()`, to release the underlying archive.
    """

    def __init__(self, zip_file: zipfile.ZipFile):
        self._zip_file = zip_file

    @classmethod
    def open(cls, blob: bytes) -> DocxContainer:
        """Open the ZIP archive in `blob`, raising `InvalidContainerError` when it is not one."""
        try:
            zip_file = zipfile.ZipFile(io.BytesIO(blob))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError, EOFError) as e:
            raise InvalidContainerError(f"document is not a readable ZIP archive: {e}") from e
        return cls(zip_file)

    def __enter__(self) -> DocxContainer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._zip_file.close()

    @lazyproperty
    def main_document_part_name(self) -> str:
        """Name of the main document part, as declared by the package relationships.

        Falls back to "word/document.xml" when `_rels/.rels` is absent, malformed or silent.
        """
        rels_xml = self.read_part(PACKAGE_RELS_PART)
        if rels_xml is None:
            return MAIN_DOCUMENT_PART
        try:
            targets = _office_document_targets(parse_xml(rels_xml), rel_type=RT_OFFICE_DOCUMENT)
        except etree.XMLSyntaxError as e:
            logger.warning("ignoring malformed %s: %s", PACKAGE_RELS_PART, e)
            return MAIN_DOCUMENT_PART
        if not targets:
            return MAIN_DOCUMENT_PART
        return str(targets[0]).lstrip("/")

    @lazyproperty
    def names(self) -> list[str]:
        """Names of all file entries in the package, in natural order; no directory entries."""
        return sorted(
            (info.filename for info in self._zip_file.infolist() if not info.is_dir()),
            key=natural_sort_key,
        )

    def part_names(self, pattern: PartPattern) -> list[str]:
        """Names of the parts matching `pattern` (`re.match()` semantics), in natural order."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        return [name for name in self.names if regex.match(name)]

    def read_part(self, name: str) -> Optional[bytes]:
        """Bytes of the part named `name`, or `None` when the package has no such part."""
        if name not in self._name_set:
            return None
        try:
            return self._zip_file.read(name)
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError) as e:
            raise InvalidContainerError(f"failed to read part {repr(name)}: {e}") from e

    def read_parts(self, pattern: PartPattern) -> dict[str, bytes]:
        """Mapping of name to bytes for every part matching `pattern`, in natural name order."""
        parts: dict[str, bytes] = {}
        for name in self.part_names(pattern):
            blob = self.read_part(name)
            if blob is not None:
                parts[name] = blob
        return parts

    def test(self) -> Optional[str]:
        """Name of the first entry whose CRC or header is bad, `None` when all entries are sound."""
        try:
            return self._zip_file.testzip()
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError) as e:
            raise InvalidContainerError(f"archive entries cannot be read: {e}") from e

    @lazyproperty
    def _name_set(self) -> frozenset[str]:
        return frozenset(self.names)
