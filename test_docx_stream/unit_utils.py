"""Utilities that ease unit-testing."""

from __future__ import annotations

import io
import struct
import zipfile
from typing import Any, Mapping, Union
from unittest.mock import (
    ANY,
    Mock,
    PropertyMock,
    create_autospec,
    patch,
)

from pytest import FixtureRequest, LogCaptureFixture, MonkeyPatch  # noqa: PT013

__all__ = (
    "ANY",
    "FixtureRequest",
    "LogCaptureFixture",
    "Mock",
    "MonkeyPatch",
    "function_mock",
    "instance_mock",
    "method_mock",
    "property_mock",
)

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
V_NS = "urn:schemas-microsoft-com:vml"


# ------------------------------------------------------------------------------------------------
# DOCX FIXTURE BUILDERS
# ------------------------------------------------------------------------------------------------
# Small DOCX packages are assembled in memory from XML snippets so each test states exactly the
# markup it depends on.
# ------------------------------------------------------------------------------------------------


def docx_bytes(parts: Mapping[str, Union[str, bytes]]) -> bytes:
    """A ZIP archive holding `parts`, each keyed by its part name."""
    stream = io.BytesIO()
    with zipfile.ZipFile(stream, "w", zipfile.ZIP_DEFLATED) as z:
        for name, content in parts.items():
            z.writestr(name, content.encode("utf-8") if isinstance(content, str) else content)
    return stream.getvalue()


def docx_bytes_with_corrupt_part(
    parts: Mapping[str, Union[str, bytes]], corrupt_part_name: str
) -> bytes:
    """Like `docx_bytes()`, but with one payload byte of `corrupt_part_name` flipped.

    Entries are stored uncompressed, so the archive still opens and only that entry fails its CRC
    check when read.
    """
    stream = io.BytesIO()
    with zipfile.ZipFile(stream, "w", zipfile.ZIP_STORED) as z:
        for name, content in parts.items():
            z.writestr(name, content.encode("utf-8") if isinstance(content, str) else content)
    blob = bytearray(stream.getvalue())

    with zipfile.ZipFile(io.BytesIO(bytes(blob))) as z:
        header_offset = z.getinfo(corrupt_part_name).header_offset
    # -- local file header is 30 bytes followed by the file name and the extra field --
    name_len, extra_len = struct.unpack("<HH", blob[header_offset + 26 : header_offset + 30])
    blob[header_offset + 30 + name_len + extra_len] ^= 0xFF
    return bytes(blob)


def document_xml(*blocks: str) -> str:
    """A main document part whose body holds the block-level XML snippets `blocks`."""
    return (
        f'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
        f'<w:document xmlns:w="{W_NS}"><w:body>{"".join(blocks)}</w:body></w:document>'
    )


def p(text: str = "", style: str | None = None, rpr: str = "", ppr: str = "") -> str:
    """A `w:p` snippet holding a single run of `text`."""
    style_xml = f'<w:pStyle w:val="{style}"/>' if style else ""
    ppr_xml = f"<w:pPr>{style_xml}{ppr}</w:pPr>" if style_xml or ppr else ""
    rpr_xml = f"<w:rPr>{rpr}</w:rPr>" if rpr else ""
    run_xml = f'<w:r>{rpr_xml}<w:t xml:space="preserve">{text}</w:t></w:r>' if text else ""
    return f"<w:p>{ppr_xml}{run_xml}</w:p>"


def tbl(*rows: list[str], header_rows: int = 0) -> str:
    """A `w:tbl` snippet with one `w:tr` per item of `rows`, each cell a single paragraph."""
    trs: list[str] = []
    for idx, row in enumerate(rows):
        trpr = "<w:trPr><w:tblHeader/></w:trPr>" if idx < header_rows else ""
        tcs = "".join(f"<w:tc>{p(text)}</w:tc>" for text in row)
        trs.append(f"<w:tr>{trpr}{tcs}</w:tr>")
    return f"<w:tbl>{''.join(trs)}</w:tbl>"


def header_xml(*blocks: str, root: str = "hdr", extra_ns: str = "") -> str:
    """A header (or, with `root="ftr"`, footer) part holding the XML snippets `blocks`."""
    return (
        f'<w:{root} xmlns:w="{W_NS}" xmlns:v="{V_NS}"{extra_ns}>{"".join(blocks)}</w:{root}>'
    )


def footnotes_xml(footnotes: Mapping[str, str]) -> str:
    """A footnotes part with one `w:footnote` per id in `footnotes`, mapped to its text."""
    items = "".join(
        f'<w:footnote w:id="{footnote_id}">{p(text)}</w:footnote>'
        for footnote_id, text in footnotes.items()
    )
    return f'<w:footnotes xmlns:w="{W_NS}">{items}</w:footnotes>'


def core_xml(**properties: str) -> str:
    """A `docProps/core.xml` part; keyword names are the prefixed element names, `:` as `_`."""
    body = "".join(
        f"<{name.replace('_', ':')}>{value}</{name.replace('_', ':')}>"
        for name, value in properties.items()
    )
    return (
        '<cp:coreProperties xmlns:cp="http://schemas.openxmlformats.org/package/2006/metadata/'
        'core-properties" xmlns:dc="http://purl.org/dc/elements/1.1/"'
        ' xmlns:dcterms="http://purl.org/dc/terms/"'
        ' xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">'
        f"{body}</cp:coreProperties>"
    )


def app_xml(pages: str, words: str) -> str:
    return (
        '<Properties xmlns="http://schemas.openxmlformats.org/officeDocument/2006/'
        f'extended-properties"><Pages>{pages}</Pages><Words>{words}</Words></Properties>'
    )


# ------------------------------------------------------------------------------------------------
# MOCKING FIXTURES
# ------------------------------------------------------------------------------------------------
# These allow full-featured and type-safe mocks to be created simply by adding a unit-test
# fixture.
# ------------------------------------------------------------------------------------------------


def function_mock(
    request: FixtureRequest, q_function_name: str, autospec: bool = True, **kwargs: Any
) -> Mock:
    """Return mock patching function with qualified name `q_function_name`.

    Patch is reversed after calling test returns.
    """
    _patch = patch(q_function_name, autospec=autospec, **kwargs)
    request.addfinalizer(_patch.stop)
    return _patch.start()


def instance_mock(
    request: FixtureRequest,
    cls: type,
    name: str | None = None,
    spec_set: bool = True,
    **kwargs: Any,
):
    """Return a mock for an instance of `cls` that draws its spec from the class.

    The mock does not allow new attributes to be set on the instance. If `name` is missing or
    |None|, the name of the returned |Mock| instance is set to *request.fixturename*.
    """
    name = name if name is not None else request.fixturename
    return create_autospec(cls, _name=name, spec_set=spec_set, instance=True, **kwargs)


def method_mock(
    request: FixtureRequest,
    cls: type,
    method_name: str,
    autospec: bool = True,
    **kwargs: Any,
):
    """Return mock for method `method_name` on `cls`.

    The patch is reversed after pytest uses it.
    """
    _patch = patch.object(cls, method_name, autospec=autospec, **kwargs)
    request.addfinalizer(_patch.stop)
    return _patch.start()


def property_mock(request: FixtureRequest, cls: type, prop_name: str, **kwargs: Any) -> Mock:
    """A mock for property `prop_name` on class `cls`.

    Patch is reversed at the end of the test run.
    """
    _patch = patch.object(cls, prop_name, new_callable=PropertyMock, **kwargs)
    request.addfinalizer(_patch.stop)
    return _patch.start()
