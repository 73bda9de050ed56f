"""Structural pre-flight checks for a DOCX document.

`validate_docx()` never raises for a bad document; every problem it finds is reported as a
`ValidationIssue`. It checks the container and that the main document part parses, nothing more.
"""

from __future__ import annotations

import dataclasses as dc
import os
from typing import Optional, Union

from lxml import etree
from typing_extensions import Literal

from docx_stream.documents.markup import parse_part
from docx_stream.errors import InvalidContainerError
from docx_stream.file_utils.container import DocxContainer
from docx_stream.file_utils.source import FileSource, read_source_bytes
from docx_stream.logger import logger
from docx_stream.partition.utils.config import env_config
from docx_stream.partition.utils.constants import ZIP_SIGNATURE
from docx_stream.utils import exactly_one


class IssueCode:
    EMPTY_BUFFER = "EMPTY_BUFFER"
    LARGE_FILE = "LARGE_FILE"
    INVALID_ZIP_SIGNATURE = "INVALID_ZIP_SIGNATURE"
    INVALID_CONTAINER = "INVALID_CONTAINER"
    CORRUPT_ENTRY = "CORRUPT_ENTRY"
    MISSING_MAIN_DOCUMENT = "MISSING_MAIN_DOCUMENT"
    INVALID_XML = "INVALID_XML"


@dc.dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    severity: Literal["warning", "error"] = "error"


@dc.dataclass(frozen=True)
class ValidationResult:
    issues: tuple[ValidationIssue, ...] = ()

    @property
    def is_valid(self) -> bool:
        """True when no issue is an error; warnings alone do not invalidate a document."""
        return not any(issue.severity == "error" for issue in self.issues)


def validate_docx(
    filename: Optional[Union[str, os.PathLike[str]]] = None,
    *,
    file: Optional[FileSource] = None,
) -> ValidationResult:
    """Check that the document is a readable DOCX package with a well-formed main document part.

    Checks stop at the first error since later checks depend on earlier ones passing.
    """
    exactly_one(filename=filename, file=file)
    blob = read_source_bytes(filename=filename, file=file)
    issues = tuple(_iter_issues(blob))
    for issue in issues:
        logger.debug("validation %s: %s", issue.code, issue.message)
    return ValidationResult(issues=issues)


def _iter_issues(blob: bytes):
    if not blob:
        yield ValidationIssue(IssueCode.EMPTY_BUFFER, "document is empty")
        return

    large_file_bytes = env_config.DOCX_STREAM_LARGE_FILE_BYTES
    if len(blob) > large_file_bytes:
        yield ValidationIssue(
            IssueCode.LARGE_FILE,
            f"document is {len(blob)} bytes, larger than {large_file_bytes};"
            " expect slow extraction",
            severity="warning",
        )

    if not blob.startswith(ZIP_SIGNATURE):
        yield ValidationIssue(
            IssueCode.INVALID_ZIP_SIGNATURE, "document does not start with a ZIP local-file header"
        )
        return

    try:
        container = DocxContainer.open(blob)
    except InvalidContainerError as e:
        yield ValidationIssue(IssueCode.INVALID_CONTAINER, e.message)
        return

    with container:
        try:
            bad_entry = container.test()
        except InvalidContainerError as e:
            yield ValidationIssue(IssueCode.CORRUPT_ENTRY, e.message)
            return
        if bad_entry is not None:
            yield ValidationIssue(
                IssueCode.CORRUPT_ENTRY, f"archive entry {repr(bad_entry)} fails its CRC check"
            )
            return

        part_name = container.main_document_part_name
        xml = container.read_part(part_name)
        if xml is None:
            yield ValidationIssue(
                IssueCode.MISSING_MAIN_DOCUMENT, f"main document part {repr(part_name)} is missing"
            )
            return

        try:
            parse_part(xml)
        except etree.XMLSyntaxError as e:
            yield ValidationIssue(
                IssueCode.INVALID_XML, f"main document part {repr(part_name)} is malformed: {e}"
            )
