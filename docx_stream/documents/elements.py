from __future__ import annotations

import abc
import base64
import dataclasses as dc
import datetime as dt
from typing import Any, ClassVar, Optional

from typing_extensions import Literal, TypeAlias

from docx_stream.partition.utils.constants import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE
from docx_stream.utils import htmlify_matrix_of_cell_texts

Severity: TypeAlias = Literal["warning", "error"]


def _to_jsonable(value: Any) -> Any:
    """Recursively convert `value` to something `json.dumps()` accepts."""
    if dc.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: _to_jsonable(getattr(value, f.name))
            for f in dc.fields(value)
            if getattr(value, f.name) is not None
        }
    if isinstance(value, (tuple, list)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, (dt.datetime, dt.date)):
        return value.isoformat()
    return value


class ElementType:
    METADATA = "metadata"
    PARAGRAPH = "paragraph"
    HEADER = "header"
    FOOTER = "footer"
    TABLE = "table"
    IMAGE = "image"


@dc.dataclass(frozen=True)
class Position:
    """Where an element sits in the output order.

    `order` is the primary sort key. `page` and `section` are placeholders: 1/1 for content
    elements and 0/0 for the metadata element; no pagination is performed.
    """

    page: int
    section: int
    order: int


@dc.dataclass(frozen=True)
class ElementError:
    """A problem encountered while producing an element that did not stop the extraction."""

    severity: Severity
    message: str
    recoverable: bool = True


@dc.dataclass(frozen=True)
class Formatting:
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strike: bool = False
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: float = DEFAULT_FONT_SIZE
    alignment: Optional[str] = None


@dc.dataclass(frozen=True)
class CheckBox:
    checked: bool


@dc.dataclass(frozen=True)
class DocumentProperties:
    """Core (and a few extended) document properties; `None` wherever the package is silent."""

    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    keywords: Optional[tuple[str, ...]] = None
    created: Optional[dt.datetime] = None
    modified: Optional[dt.datetime] = None
    pages: Optional[int] = None
    words: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in dc.fields(self))

    def to_dict(self) -> dict[str, Any]:
        return _to_jsonable(self)


@dc.dataclass(frozen=True)
class TableCell:
    content: str


@dc.dataclass(frozen=True)
class TableRow:
    cells: tuple[TableCell, ...]
    is_header: bool = False


@dc.dataclass(frozen=True)
class ImageInfo:
    """Image description; dimensions are not decoded so width and height are always 0."""

    filename: str
    format: str
    width: int = 0
    height: int = 0


@dc.dataclass(frozen=True)
class ImagePositioning:
    inline: bool = True


@dc.dataclass(frozen=True, kw_only=True)
class Element(abc.ABC):
    """One typed, ordered unit of content extracted from a DOCX document.

    Elements are immutable. `element_id` is "element_<n>" where `n` increases by one for each
    element emitted in a single extraction run.
    """

    category: ClassVar[str] = "uncategorized"

    element_id: str
    position: Position
    error: Optional[ElementError] = None

    @property
    def text(self) -> str:
        return ""

    def __str__(self):
        return self.text

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible (str keys) dict."""
        out: dict[str, Any] = {"type": self.category}
        out.update(_to_jsonable(self))
        return out


@dc.dataclass(frozen=True, kw_only=True)
class Metadata(Element):
    category: ClassVar[str] = ElementType.METADATA

    content: DocumentProperties = dc.field(default_factory=DocumentProperties)


@dc.dataclass(frozen=True, kw_only=True)
class Paragraph(Element):
    """Body text; footnotes are paragraphs with `is_footnote` set and `footnote_id` naming them."""

    category: ClassVar[str] = ElementType.PARAGRAPH

    content: str
    formatting: Optional[Formatting] = None
    checkbox: Optional[CheckBox] = None
    footnote_id: Optional[str] = None
    is_footnote: bool = False

    @property
    def text(self) -> str:
        return self.content


@dc.dataclass(frozen=True, kw_only=True)
class Header(Element):
    """A heading in the body, or the text of a page-header part.

    Only elements produced from a header part have `part_name` set.
    """

    category: ClassVar[str] = ElementType.HEADER

    content: str
    level: int = 1
    formatting: Optional[Formatting] = None
    part_name: Optional[str] = None
    has_page_number: bool = False
    watermark: Optional[str] = None

    @property
    def text(self) -> str:
        return self.content


@dc.dataclass(frozen=True, kw_only=True)
class Footer(Element):
    category: ClassVar[str] = ElementType.FOOTER

    content: str
    has_page_number: bool = False
    part_name: Optional[str] = None

    @property
    def text(self) -> str:
        return self.content


@dc.dataclass(frozen=True, kw_only=True)
class Table(Element):
    category: ClassVar[str] = ElementType.TABLE

    rows: tuple[TableRow, ...]

    @property
    def cell_texts(self) -> list[list[str]]:
        """Cell contents as a matrix of strings, one list per row."""
        return [[cell.content for cell in row.cells] for row in self.rows]

    @property
    def text(self) -> str:
        return " ".join(" ".join(row) for row in self.cell_texts)

    @property
    def text_as_html(self) -> str:
        return htmlify_matrix_of_cell_texts(self.cell_texts)

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["text"] = self.text
        out["text_as_html"] = self.text_as_html
        return out


@dc.dataclass(frozen=True, kw_only=True)
class Image(Element):
    category: ClassVar[str] = ElementType.IMAGE

    content: bytes
    image: ImageInfo
    positioning: ImagePositioning = dc.field(default_factory=ImagePositioning)


TYPE_TO_ELEMENT_CLASS_MAP: dict[str, type[Element]] = {
    cls.category: cls for cls in (Metadata, Paragraph, Header, Footer, Table, Image)
}
