"""Test suite for `docx_stream.file_utils.validation` module."""

from __future__ import annotations

import io
import pathlib
import zipfile

import pytest

from docx_stream.file_utils.validation import (
    IssueCode,
    ValidationIssue,
    ValidationResult,
    validate_docx,
)
from test_docx_stream.unit_utils import docx_bytes, document_xml, p


def _codes(result: ValidationResult) -> list[str]:
    return [issue.code for issue in result.issues]


def test_validate_docx_finds_no_issues_in_a_sound_document():
    result = validate_docx(file=docx_bytes({"word/document.xml": document_xml(p("Hello"))}))

    assert result.is_valid is True
    assert result.issues == ()


def test_validate_docx_accepts_a_path(tmp_path: pathlib.Path):
    path = tmp_path / "doc.docx"
    path.write_bytes(docx_bytes({"word/document.xml": document_xml(p("Hello"))}))

    assert validate_docx(str(path)).is_valid is True


def test_validate_docx_requires_exactly_one_source():
    with pytest.raises(ValueError, match="Exactly one of filename and file must be specified."):
        validate_docx()


def test_validate_docx_reports_an_empty_document():
    result = validate_docx(file=b"")

    assert result.is_valid is False
    assert _codes(result) == [IssueCode.EMPTY_BUFFER]


def test_validate_docx_reports_a_document_without_a_zip_signature():
    result = validate_docx(file=b"%PDF-1.7 not a docx")

    assert _codes(result) == [IssueCode.INVALID_ZIP_SIGNATURE]


def test_validate_docx_reports_an_archive_that_cannot_be_opened():
    result = validate_docx(file=b"PK\x03\x04 but nothing more")

    assert result.is_valid is False
    assert _codes(result) == [IssueCode.INVALID_CONTAINER]


def test_validate_docx_reports_an_entry_that_fails_its_crc_check():
    stream = io.BytesIO()
    with zipfile.ZipFile(stream, "w", zipfile.ZIP_STORED) as z:
        z.writestr("word/document.xml", b"hello world")
    blob = stream.getvalue().replace(b"hello world", b"hellO world")

    result = validate_docx(file=blob)

    assert _codes(result) == [IssueCode.CORRUPT_ENTRY]
    assert "word/document.xml" in result.issues[0].message


def test_validate_docx_reports_a_missing_main_document_part():
    result = validate_docx(file=docx_bytes({"docProps/core.xml": "<x/>"}))

    assert result.issues == (
        ValidationIssue(
            IssueCode.MISSING_MAIN_DOCUMENT, "main document part 'word/document.xml' is missing"
        ),
    )


def test_validate_docx_reports_a_malformed_main_document_part():
    result = validate_docx(file=docx_bytes({"word/document.xml": "<w:document><w:body>"}))

    assert _codes(result) == [IssueCode.INVALID_XML]
    assert result.issues[0].severity == "error"


def test_validate_docx_warns_about_a_large_document_without_invalidating_it(
    monkeypatch: pytest.MonkeyPatch,
):
    monkeypatch.setenv("DOCX_STREAM_LARGE_FILE_BYTES", "10")

    result = validate_docx(file=docx_bytes({"word/document.xml": document_xml(p("Hello"))}))

    assert result.is_valid is True
    assert _codes(result) == [IssueCode.LARGE_FILE]
    assert result.issues[0].severity == "warning"


def test_validate_docx_keeps_checking_after_a_large_file_warning(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DOCX_STREAM_LARGE_FILE_BYTES", "4")

    result = validate_docx(file=b"not a zip archive")

    assert _codes(result) == [IssueCode.LARGE_FILE, IssueCode.INVALID_ZIP_SIGNATURE]
    assert result.is_valid is False
