"""Turns analyzed markup nodes into output elements.

One `ElementBuilder` serves one extraction run. It owns the run's id counter and an order cursor
for each stage band, so element ids and positions never leak between runs.
"""

from __future__ import annotations

import posixpath
from typing import Optional, Union

from docx_stream.cleaners.core import normalize_text
from docx_stream.documents.elements import (
    CheckBox,
    DocumentProperties,
    ElementError,
    Footer,
    Formatting,
    Header,
    Image,
    ImageInfo,
    ImagePositioning,
    Metadata,
    Paragraph,
    Position,
    Table,
    TableCell,
    TableRow,
)
from docx_stream.documents.markup import (
    AppPropertiesNode,
    CorePropertiesNode,
    FootnoteNode,
    HeaderFooterNode,
    ParagraphNode,
    RunFormatting,
    TableNode,
)
from docx_stream.logger import logger
from docx_stream.partition.utils.constants import (
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_FOOTNOTE_FONT_SIZE,
    IMAGE_FORMATS,
    ORDER_BAND_WIDTH,
    OrderBand,
    Stage,
)

_STAGE_BANDS = {
    Stage.METADATA: OrderBand.METADATA,
    Stage.CONTENT: OrderBand.CONTENT,
    # -- tables share the content band, numbered after the body paragraphs --
    Stage.TABLES: OrderBand.CONTENT,
    Stage.IMAGES: OrderBand.IMAGES,
    Stage.HEADERS: OrderBand.HEADERS,
    Stage.FOOTERS: OrderBand.FOOTERS,
    Stage.FOOTNOTES: OrderBand.FOOTNOTES,
}


class ElementIdCounter:
    """Issues "element_1", "element_2", ... for a single extraction run."""

    def __init__(self, start: int = 0, prefix: str = "element_"):
        self._value = start
        self._prefix = prefix

    @property
    def value(self) -> int:
        """The number in the most recently issued id, `start` when none has been issued."""
        return self._value

    def next_id(self) -> str:
        self._value += 1
        return f"{self._prefix}{self._value}"


class OrderCursor:
    """Hands out consecutive `position.order` values inside one band.

    Bands are a fixed 1000 wide. A stage that outgrows its band keeps counting into the next band
    rather than failing; a warning is logged the first time that happens.
    """

    def __init__(self, band_start: int):
        self._band_start = band_start
        self._next = band_start
        self._overflow_logged = False

    def next_order(self) -> int:
        order = self._next
        self._next += 1
        if order >= self._band_limit and not self._overflow_logged:
            logger.warning(
                "order band starting at %d is full; later elements overlap the next band",
                self._band_start,
            )
            self._overflow_logged = True
        return order

    @property
    def _band_limit(self) -> int:
        # -- the content band starts at 1 but still ends where the image band begins --
        return self._band_start - self._band_start % ORDER_BAND_WIDTH + ORDER_BAND_WIDTH


class ElementBuilder:
    """Builds immutable elements from nodes, applying normalization and formatting defaults."""

    def __init__(
        self,
        *,
        normalize_whitespace: bool = True,
        preserve_formatting: bool = True,
        id_counter: Optional[ElementIdCounter] = None,
    ):
        self._normalize_whitespace = normalize_whitespace
        self._preserve_formatting = preserve_formatting
        self._id_counter = id_counter or ElementIdCounter()
        self._cursors: dict[int, OrderCursor] = {}

    def build_metadata(
        self,
        core: Optional[CorePropertiesNode],
        app: Optional[AppPropertiesNode] = None,
        error: Optional[ElementError] = None,
    ) -> Metadata:
        """The metadata element; all properties are `None` when `core` is `None`."""
        core = core or CorePropertiesNode()
        app = app or AppPropertiesNode()
        return Metadata(
            element_id=self._id_counter.next_id(),
            position=Position(page=0, section=0, order=self._next_order(Stage.METADATA)),
            error=error,
            content=DocumentProperties(
                title=core.title,
                author=core.author,
                subject=core.subject,
                keywords=core.keywords,
                created=core.created,
                modified=core.modified,
                pages=app.pages,
                words=app.words,
            ),
        )

    def build_block(self, node: ParagraphNode) -> Union[Paragraph, Header]:
        """A `Header` when `node` has a heading style, a `Paragraph` otherwise."""
        text = self._normalize(node.text)
        formatting = self._formatting(node.formatting, DEFAULT_FONT_SIZE)
        element_id = self._id_counter.next_id()
        position = self._content_position(Stage.CONTENT)

        if node.heading_level is not None:
            return Header(
                element_id=element_id,
                position=position,
                content=text,
                level=node.heading_level,
                formatting=formatting,
            )

        # -- strike-through is read as a ticked checklist item; nothing marks an unticked one --
        checkbox = CheckBox(checked=True) if node.formatting.strike else None
        return Paragraph(
            element_id=element_id,
            position=position,
            content=text,
            formatting=formatting,
            checkbox=checkbox,
        )

    def build_table(self, node: TableNode) -> Table:
        rows = tuple(
            TableRow(
                cells=tuple(TableCell(content=self._normalize(cell)) for cell in row.cells),
                is_header=row.is_header,
            )
            for row in node.rows
        )
        return Table(
            element_id=self._id_counter.next_id(),
            position=self._content_position(Stage.TABLES),
            rows=rows,
        )

    def build_page_header(self, part_name: str, node: HeaderFooterNode) -> Header:
        return Header(
            element_id=self._id_counter.next_id(),
            position=self._content_position(Stage.HEADERS),
            content=self._normalize(node.text),
            part_name=part_name,
            has_page_number=node.has_page_number,
            watermark=node.watermark,
        )

    def build_page_footer(self, part_name: str, node: HeaderFooterNode) -> Footer:
        return Footer(
            element_id=self._id_counter.next_id(),
            position=self._content_position(Stage.FOOTERS),
            content=self._normalize(node.text),
            part_name=part_name,
            has_page_number=node.has_page_number,
        )

    def build_footnote(self, node: FootnoteNode) -> Paragraph:
        return Paragraph(
            element_id=self._id_counter.next_id(),
            position=self._content_position(Stage.FOOTNOTES),
            content=self._normalize(node.text),
            formatting=self._formatting(node.formatting, DEFAULT_FOOTNOTE_FONT_SIZE),
            footnote_id=node.footnote_id,
            is_footnote=True,
        )

    def build_image(self, part_name: str, blob: bytes) -> Optional[Image]:
        """An `Image` for media part `part_name`, `None` for an unknown image extension."""
        filename = posixpath.basename(part_name)
        image_format = image_format_from_filename(filename)
        if image_format is None:
            logger.debug("skipping media part %s with unrecognized image format", part_name)
            return None
        return Image(
            element_id=self._id_counter.next_id(),
            position=self._content_position(Stage.IMAGES),
            content=blob,
            image=ImageInfo(filename=filename, format=image_format),
            positioning=ImagePositioning(inline=True),
        )

    def _content_position(self, stage: Stage) -> Position:
        return Position(page=1, section=1, order=self._next_order(stage))

    def _formatting(self, run: RunFormatting, default_font_size: float) -> Optional[Formatting]:
        """Block-specific formatting merged over the defaults, `None` when not preserved."""
        if not self._preserve_formatting:
            return None
        return Formatting(
            bold=run.bold,
            italic=run.italic,
            underline=run.underline,
            strike=run.strike,
            font_family=run.font_family or DEFAULT_FONT_FAMILY,
            font_size=run.font_size or default_font_size,
            alignment=run.alignment,
        )

    def _next_order(self, stage: Stage) -> int:
        band_start = _STAGE_BANDS[stage]
        cursor = self._cursors.get(band_start)
        if cursor is None:
            cursor = self._cursors[band_start] = OrderCursor(band_start)
        return cursor.next_order()

    def _normalize(self, text: str) -> str:
        return normalize_text(text, self._normalize_whitespace)


def image_format_from_filename(filename: str) -> Optional[str]:
    """Image format for `filename` judged by its extension alone, `None` when unrecognized."""
    _, ext = posixpath.splitext(filename)
    return IMAGE_FORMATS.get(ext.lstrip(".").lower())
