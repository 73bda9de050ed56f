# pyright: reportUnknownMemberType=false

"""Structural analysis of the XML parts of a DOCX package.

Each part is parsed with python-docx's oxml parser (lxml with python-docx's custom element classes
registered, so a `w:r` element is a `CT_R` and knows its own text) and walked with compiled XPath
expressions. The functions here produce plain node objects; turning nodes into output elements is
the job of `docx_stream.partition.common.builder`.

Any parse failure (`lxml.etree.XMLSyntaxError`) propagates to the caller, which decides whether it
is fatal for the extraction.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import re
from typing import Iterator, Optional, Sequence

from dateutil import parser as date_parser
from docx.oxml.ns import nsmap
from docx.oxml.parser import parse_xml
from docx.oxml.text.run import CT_R
from lxml import etree

from docx_stream.logger import logger

NSMAP = {
    **nsmap,
    "v": "urn:schemas-microsoft-com:vml",
}

_OFF_VALUES = frozenset(("0", "false", "off"))
_KEYWORD_SEPARATOR_RE = re.compile(r"[,;]")
_HEADING_NUMBER_RE = re.compile(r"heading\s*(\d+)")
_H_STYLE_RE = re.compile(r"h(\d+)")

_JUSTIFICATION_TO_ALIGNMENT = {
    "left": "left",
    "start": "left",
    "center": "center",
    "right": "right",
    "end": "right",
    "both": "justify",
    "distribute": "justify",
}


def _xpath(expr: str) -> etree.XPath:
    return etree.XPath(expr, namespaces=NSMAP)


# -- content --
_body_paragraphs = _xpath("w:body/w:p | w:body/w:sdt/w:sdtContent/w:p")
_body_tables = _xpath("w:body/w:tbl | w:body/w:sdt/w:sdtContent/w:tbl")
_paragraph_runs = _xpath(
    "w:r | w:hyperlink/w:r | w:ins/w:r | w:smartTag/w:r | w:fldSimple/w:r"
    " | w:sdt/w:sdtContent/w:r"
)
_paragraph_style = _xpath("w:pPr/w:pStyle/@w:val")
_paragraph_justification = _xpath("w:pPr/w:jc/@w:val")
_descendant_paragraphs = _xpath(".//w:p")

# -- run properties anywhere in the paragraph, including the paragraph-mark properties --
_bold = _xpath(".//w:rPr/w:b")
_italic = _xpath(".//w:rPr/w:i")
_underline = _xpath(".//w:rPr/w:u")
_strike = _xpath(".//w:rPr/w:strike | .//w:rPr/w:dstrike")
_font_size = _xpath(".//w:rPr/w:sz/@w:val")
_font_family = _xpath(".//w:rPr/w:rFonts/@w:ascii")

# -- tables --
_table_rows = _xpath("w:tr | w:sdt/w:sdtContent/w:tr")
_row_cells = _xpath("w:tc | w:sdt/w:sdtContent/w:tc")
_row_is_header = _xpath("w:trPr/w:tblHeader")

# -- headers and footers --
_field_instructions = _xpath(".//w:instrText/text() | .//w:fldSimple/@w:instr")
_watermark_strings = _xpath(
    ".//*[local-name()='textpath']/@string | .//*[@fitshape='t']/@string"
)

# -- footnotes --
_footnotes = _xpath("w:footnote")

# -- document properties --
_core_title = _xpath("dc:title/text()")
_core_creator = _xpath("dc:creator/text()")
_core_subject = _xpath("dc:subject/text()")
_core_keywords = _xpath("cp:keywords/text()")
_core_created = _xpath("dcterms:created/text()")
_core_modified = _xpath("dcterms:modified/text()")
_app_pages = _xpath("*[local-name()='Pages']/text()")
_app_words = _xpath("*[local-name()='Words']/text()")


def _qn(tag: str) -> str:
    prefix, name = tag.split(":")
    return f"{{{NSMAP[prefix]}}}{name}"


_W_VAL = _qn("w:val")
_W_ID = _qn("w:id")


# ================================================================================================
# NODES
# ================================================================================================


@dc.dataclass(frozen=True)
class RunFormatting:
    """Formatting found in a paragraph's run properties; `None` values mean "not specified"."""

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strike: bool = False
    font_family: Optional[str] = None
    font_size: Optional[float] = None
    alignment: Optional[str] = None


@dc.dataclass(frozen=True)
class ParagraphNode:
    text: str
    heading_level: Optional[int] = None
    formatting: RunFormatting = dc.field(default_factory=RunFormatting)


@dc.dataclass(frozen=True)
class TableRowNode:
    cells: Sequence[str]
    is_header: bool = False


@dc.dataclass(frozen=True)
class TableNode:
    rows: Sequence[TableRowNode]


@dc.dataclass(frozen=True)
class HeaderFooterNode:
    text: str
    has_page_number: bool = False
    watermark: Optional[str] = None


@dc.dataclass(frozen=True)
class FootnoteNode:
    footnote_id: str
    text: str
    formatting: RunFormatting = dc.field(default_factory=RunFormatting)


@dc.dataclass(frozen=True)
class CorePropertiesNode:
    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    keywords: Optional[tuple[str, ...]] = None
    created: Optional[dt.datetime] = None
    modified: Optional[dt.datetime] = None


@dc.dataclass(frozen=True)
class AppPropertiesNode:
    pages: Optional[int] = None
    words: Optional[int] = None


# ================================================================================================
# PARSING
# ================================================================================================


def parse_part(xml: bytes) -> etree._Element:
    """Root element of the XML part `xml`; raises `lxml.etree.XMLSyntaxError` when malformed."""
    return parse_xml(xml)


class DocumentAnalyzer:
    """Recovers body paragraphs and body tables from the main document part.

    Only body-level blocks are considered, including those wrapped in a block-level content
    control. Paragraphs inside a table cell belong to the table, not to the paragraph sequence.
    """

    def __init__(self, document: etree._Element):
        self._document = document

    @classmethod
    def from_xml(cls, xml: bytes) -> DocumentAnalyzer:
        return cls(parse_part(xml))

    def iter_paragraphs(self) -> Iterator[ParagraphNode]:
        """Generate a node for each non-blank body paragraph, in document order."""
        for p in _body_paragraphs(self._document):
            node = analyze_paragraph(p)
            if node is not None:
                yield node

    def iter_tables(self) -> Iterator[TableNode]:
        """Generate a node for each body table with at least one row of cells, in document order."""
        for tbl in _body_tables(self._document):
            node = analyze_table(tbl)
            if node is not None:
                yield node


def paragraph_text(p: etree._Element) -> str:
    """Concatenated text of the runs in paragraph `p`.

    Runs inside hyperlinks, tracked insertions, smart tags, simple fields and inline content
    controls count. Deleted runs do not; their text is in `w:delText`, which a run does not report.
    """
    return "".join(r.text for r in _paragraph_runs(p) if isinstance(r, CT_R))


def analyze_paragraph(p: etree._Element) -> Optional[ParagraphNode]:
    """A node for paragraph `p`, `None` when `p` holds only whitespace.

    In Word an empty paragraph is commonly used for inter-paragraph spacing; it produces nothing.
    """
    text = paragraph_text(p)
    if not text.strip():
        return None

    return ParagraphNode(
        text=text,
        heading_level=heading_level(_first(_paragraph_style(p))),
        formatting=analyze_formatting(p),
    )


def heading_level(style: Optional[str]) -> Optional[int]:
    """Heading level implied by style-name `style`, `None` when it is not a heading style.

    Only the style name is inspected, case-insensitively:

    - contains "heading": the number following "heading" ("Heading2", "heading 3"), default 1
    - is "h<n>": n
    - contains "subtitle": 2
    - contains "title": 1

    A short, bold or centered paragraph is not a heading unless it is styled as one.
    """
    if not style:
        return None
    name = style.lower()

    if "heading" in name:
        match = _HEADING_NUMBER_RE.search(name)
        return max(int(match.group(1)), 1) if match else 1

    if match := _H_STYLE_RE.fullmatch(name):
        return max(int(match.group(1)), 1)

    # -- "subtitle" contains "title" so it must be tested first --
    if "subtitle" in name:
        return 2
    if "title" in name:
        return 1

    return None


def analyze_formatting(p: etree._Element) -> RunFormatting:
    """Formatting flags and values found anywhere in the run properties of paragraph `p`.

    Each flag is an independent presence test; run-level granularity is not modeled, so one bold
    run makes the whole paragraph bold.
    """
    return RunFormatting(
        bold=any(_is_on(e) for e in _bold(p)),
        italic=any(_is_on(e) for e in _italic(p)),
        underline=any(_is_underline_on(e) for e in _underline(p)),
        strike=any(_is_on(e) for e in _strike(p)),
        font_family=_first(_font_family(p)),
        font_size=_half_points_to_points(_first(_font_size(p))),
        alignment=_alignment(_first(_paragraph_justification(p))),
    )


def analyze_table(tbl: etree._Element) -> Optional[TableNode]:
    """A node for table `tbl`, `None` when no row has a cell.

    Cell text is the text of each non-blank paragraph in the cell, nested tables included, joined
    with line-feeds. Merged cells are not reconstructed.
    """
    rows: list[TableRowNode] = []
    for tr in _table_rows(tbl):
        cells = [_cell_text(tc) for tc in _row_cells(tr)]
        if not cells:
            continue
        rows.append(
            TableRowNode(cells=cells, is_header=any(_is_on(e) for e in _row_is_header(tr)))
        )
    return TableNode(rows=rows) if rows else None


def analyze_header_footer(xml: bytes) -> Optional[HeaderFooterNode]:
    """A node for a header or footer part, `None` when it has no text, page number or watermark."""
    root = parse_part(xml)

    texts = [paragraph_text(p) for p in _descendant_paragraphs(root)]
    text = "\n".join(t for t in texts if t.strip())
    has_page_number = any(_is_page_field(instr) for instr in _field_instructions(root))
    watermark = next((str(s) for s in _watermark_strings(root) if s.strip()), None)

    if not text and not has_page_number and watermark is None:
        return None
    return HeaderFooterNode(text=text, has_page_number=has_page_number, watermark=watermark)


def iter_footnotes(xml: bytes) -> Iterator[FootnoteNode]:
    """Generate a node for each footnote in the footnotes part that carries text.

    The separator footnotes Word reserves (ids -1 and 0) are normally blank and so skipped, but
    when a document puts text in one it is reported like any other.
    """
    root = parse_part(xml)
    for footnote in _footnotes(root):
        texts = [paragraph_text(p) for p in _descendant_paragraphs(footnote)]
        text = "\n".join(t for t in texts if t.strip())
        if not text:
            continue
        yield FootnoteNode(
            footnote_id=footnote.get(_W_ID, ""),
            text=text,
            formatting=analyze_formatting(footnote),
        )


def analyze_core_properties(xml: bytes) -> CorePropertiesNode:
    """Title, author, subject, keywords and timestamps from the `docProps/core.xml` part."""
    root = parse_part(xml)
    return CorePropertiesNode(
        title=_text_or_none(_core_title(root)),
        author=_text_or_none(_core_creator(root)),
        subject=_text_or_none(_core_subject(root)),
        keywords=_keywords(_text_or_none(_core_keywords(root))),
        created=_parse_w3cdtf(_text_or_none(_core_created(root))),
        modified=_parse_w3cdtf(_text_or_none(_core_modified(root))),
    )


def analyze_app_properties(xml: bytes) -> AppPropertiesNode:
    """Page and word counts from the `docProps/app.xml` part, as last saved by the authoring app."""
    root = parse_part(xml)
    return AppPropertiesNode(
        pages=_int_or_none(_text_or_none(_app_pages(root))),
        words=_int_or_none(_text_or_none(_app_words(root))),
    )


# ================================================================================================
# HELPERS
# ================================================================================================


def _alignment(justification: Optional[str]) -> Optional[str]:
    if justification is None:
        return None
    return _JUSTIFICATION_TO_ALIGNMENT.get(justification.lower())


def _cell_text(tc: etree._Element) -> str:
    texts = [paragraph_text(p) for p in _descendant_paragraphs(tc)]
    return "\n".join(t for t in texts if t.strip())


def _first(values: Sequence[object]) -> Optional[str]:
    return str(values[0]) if values else None


def _half_points_to_points(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return int(value) / 2
    except ValueError:
        logger.debug("ignoring non-integer font size %r", value)
        return None


def _int_or_none(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _is_on(element: etree._Element) -> bool:
    """True when OOXML on/off property `element` is on; an absent `w:val` means on."""
    val = element.get(_W_VAL)
    return val is None or val.lower() not in _OFF_VALUES


def _is_page_field(instruction: str) -> bool:
    tokens = instruction.split()
    return bool(tokens) and tokens[0].upper() == "PAGE"


def _is_underline_on(element: etree._Element) -> bool:
    val = element.get(_W_VAL)
    return val is None or val.lower() not in _OFF_VALUES | {"none"}


def _keywords(value: Optional[str]) -> Optional[tuple[str, ...]]:
    if value is None:
        return None
    keywords = tuple(k.strip() for k in _KEYWORD_SEPARATOR_RE.split(value) if k.strip())
    return keywords or None


def _parse_w3cdtf(value: Optional[str]) -> Optional[dt.datetime]:
    if value is None:
        return None
    try:
        return date_parser.isoparse(value)
    except (ValueError, OverflowError):
        logger.debug("ignoring unparseable document date %r", value)
        return None


def _text_or_none(values: Sequence[object]) -> Optional[str]:
    text = _first(values)
    if text is None:
        return None
    text = text.strip()
    return text or None
