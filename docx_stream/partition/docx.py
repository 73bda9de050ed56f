# pyright: reportPrivateUsage=false

from __future__ import annotations

import os
from typing import Any, Callable, Iterator, Optional, Pattern, Union

from lxml import etree

from docx_stream.documents.elements import (
    DocumentProperties,
    Element,
    ElementError,
    Header,
    Image,
    Metadata,
    Paragraph,
    Table,
)
from docx_stream.documents.markup import (
    AppPropertiesNode,
    DocumentAnalyzer,
    HeaderFooterNode,
    analyze_app_properties,
    analyze_core_properties,
    analyze_header_footer,
    iter_footnotes,
)
from docx_stream.errors import DocxParseError, InvalidContainerError, MissingPartError
from docx_stream.file_utils.container import DocxContainer
from docx_stream.file_utils.source import FileSource, read_source_bytes
from docx_stream.logger import get_logger
from docx_stream.partition.common.builder import ElementBuilder, image_format_from_filename
from docx_stream.partition.common.stage import StageResult, StageStatus
from docx_stream.partition.utils.config import env_config
from docx_stream.partition.utils.constants import (
    APP_PROPERTIES_PART,
    CORE_PROPERTIES_PART,
    FOOTER_PART_RE,
    FOOTNOTES_PART,
    HEADER_PART_RE,
    MEDIA_PART_RE,
    Stage,
)
from docx_stream.utils import exactly_one, lazyproperty

# -- failures that mean "this part's markup is broken", as opposed to "the package is broken" --
_MARKUP_ERRORS = (etree.LxmlError, ValueError)
# -- a secondary part is unusable when its entry cannot be decompressed or its markup is broken --
_PART_ERRORS = (InvalidContainerError, *_MARKUP_ERRORS)

logger = get_logger()


# ================================================================================================
# EXTRACTION API
# ================================================================================================


def iter_docx_elements(
    filename: Optional[Union[str, os.PathLike[str]]] = None,
    *,
    file: Optional[FileSource] = None,
    include_metadata: bool = True,
    include_images: bool = True,
    include_tables: bool = True,
    include_headers: bool = False,
    include_footers: bool = False,
    max_image_size_bytes: Optional[int] = None,
    normalize_whitespace: Optional[bool] = None,
    preserve_formatting: bool = True,
) -> Iterator[Element]:
    """Generate the content elements of a Word 2007+ (.docx) document, one at a time.

    Elements are produced stage by stage: metadata, body content (paragraphs and headings, then
    tables), page headers, page footers, footnotes and finally images. Each stage is a contiguous
    block of the sequence and owns its own band of `position.order` values.

    Argument errors are raised immediately. A document that cannot be extracted at all raises
    `DocxParseError` (or a subclass) from the iterator, once. A broken secondary part is logged and
    contributes no elements. Closing the iterator early releases the document.

    Parameters
    ----------
    filename
        Path of the document.
    file
        The document as bytes, a binary file-like object, or an iterable of byte chunks.
    include_metadata
        Emit one `Metadata` element first.
    include_images
        Emit an `Image` element for each picture in the package media folder.
    include_tables
        Emit a `Table` element for each body-level table.
    include_headers
        Emit a `Header` element for each non-empty page-header part.
    include_footers
        Emit a `Footer` element for each non-empty page-footer part.
    max_image_size_bytes
        Images larger than this are silently left out. Defaults to the
        `DOCX_STREAM_MAX_IMAGE_SIZE_BYTES` environment variable, 10 MiB when unset.
    normalize_whitespace
        Collapse whitespace runs in all text to a single space and trim the ends.
    preserve_formatting
        Attach a `Formatting` to paragraphs and headings; when False `formatting` is `None`.
    """
    opts = DocxPartitionerOptions.load(
        file=file,
        file_path=filename,
        include_metadata=include_metadata,
        include_images=include_images,
        include_tables=include_tables,
        include_headers=include_headers,
        include_footers=include_footers,
        max_image_size_bytes=max_image_size_bytes,
        normalize_whitespace=normalize_whitespace,
        preserve_formatting=preserve_formatting,
    )
    return _DocxPartitioner.iter_document_elements(opts)


def partition_docx(
    filename: Optional[Union[str, os.PathLike[str]]] = None,
    *,
    file: Optional[FileSource] = None,
    **kwargs: Any,
) -> list[Element]:
    """All elements of the document as a list; accepts the options of `iter_docx_elements()`."""
    return list(iter_docx_elements(filename, file=file, **kwargs))


def extract_text(
    filename: Optional[Union[str, os.PathLike[str]]] = None,
    *,
    file: Optional[FileSource] = None,
    preserve_formatting: bool = False,
) -> str:
    """Plain text of the document body, tables and footnotes.

    Each paragraph, heading and footnote contributes one line. A table contributes one line per
    row with its cells separated by tabs.
    """
    elements = iter_docx_elements(
        filename,
        file=file,
        include_metadata=False,
        include_images=False,
        include_tables=True,
        preserve_formatting=preserve_formatting,
    )
    return "\n".join(text for text in (_plain_text(e) for e in elements) if text)


def extract_images(
    filename: Optional[Union[str, os.PathLike[str]]] = None,
    *,
    file: Optional[FileSource] = None,
    max_image_size_bytes: Optional[int] = None,
) -> Iterator[Image]:
    """Generate only the `Image` elements of the document."""
    elements = iter_docx_elements(
        filename,
        file=file,
        include_metadata=False,
        include_images=True,
        include_tables=False,
        max_image_size_bytes=max_image_size_bytes,
    )
    return (e for e in elements if isinstance(e, Image))


def extract_metadata(
    filename: Optional[Union[str, os.PathLike[str]]] = None,
    *,
    file: Optional[FileSource] = None,
) -> DocumentProperties:
    """Document properties; every property is `None` when the document has none to offer."""
    elements = iter_docx_elements(
        filename, file=file, include_metadata=True, include_images=False, include_tables=False
    )
    try:
        metadata = next((e for e in elements if isinstance(e, Metadata)), None)
    finally:
        # -- metadata is the first stage; stop before any body element is built --
        elements.close()  # pyright: ignore[reportAttributeAccessIssue]
    return metadata.content if metadata is not None else DocumentProperties()


def _plain_text(element: Element) -> str:
    if isinstance(element, Table):
        return "\n".join("\t".join(row) for row in element.cell_texts)
    if isinstance(element, Paragraph):
        return element.text
    if isinstance(element, Header) and element.part_name is None:
        return element.text
    return ""


# ================================================================================================
# OPTIONS
# ================================================================================================


class DocxPartitionerOptions:
    """Encapsulates extraction option validation, computation, and application of defaults."""

    def __init__(
        self,
        *,
        file: Optional[FileSource],
        file_path: Optional[Union[str, os.PathLike[str]]],
        include_metadata: bool = True,
        include_images: bool = True,
        include_tables: bool = True,
        include_headers: bool = False,
        include_footers: bool = False,
        max_image_size_bytes: Optional[int] = None,
        normalize_whitespace: Optional[bool] = None,
        preserve_formatting: bool = True,
    ):
        self._file = file
        self._file_path = file_path
        self._include_metadata = include_metadata
        self._include_images = include_images
        self._include_tables = include_tables
        self._include_headers = include_headers
        self._include_footers = include_footers
        self._max_image_size_bytes = max_image_size_bytes
        self._normalize_whitespace = normalize_whitespace
        self._preserve_formatting = preserve_formatting

    @classmethod
    def load(cls, **kwargs: Any) -> DocxPartitionerOptions:
        """Construct and validate an instance."""
        return cls(**kwargs)._validate()

    @lazyproperty
    def blob(self) -> bytes:
        """The whole document, read from file or filename."""
        return read_source_bytes(filename=self._file_path, file=self._file)

    @property
    def include_metadata(self) -> bool:
        return self._include_metadata

    @property
    def include_images(self) -> bool:
        return self._include_images

    @property
    def include_tables(self) -> bool:
        """When False the table scan of the body is not performed at all."""
        return self._include_tables

    @property
    def include_headers(self) -> bool:
        return self._include_headers

    @property
    def include_footers(self) -> bool:
        return self._include_footers

    @lazyproperty
    def max_image_size_bytes(self) -> int:
        """Largest image, in bytes, to include; an image of exactly this size is included."""
        if self._max_image_size_bytes is None:
            return env_config.DOCX_STREAM_MAX_IMAGE_SIZE_BYTES
        return self._max_image_size_bytes

    @property
    def normalize_whitespace(self) -> bool:
        if self._normalize_whitespace is None:
            return env_config.DOCX_STREAM_NORMALIZE_WHITESPACE
        return self._normalize_whitespace

    @property
    def preserve_formatting(self) -> bool:
        return self._preserve_formatting

    def _validate(self) -> DocxPartitionerOptions:
        """Raise on first invalid option, return self otherwise."""
        exactly_one(filename=self._file_path, file=self._file)

        # -- provide distinguished error between "file-not-found" and "not-a-DOCX-file" --
        if self._file_path is not None and not os.path.isfile(self._file_path):
            raise FileNotFoundError(f"no such file or directory: {repr(self._file_path)}")

        if self._max_image_size_bytes is not None and self._max_image_size_bytes < 0:
            raise ValueError(
                f"max_image_size_bytes must be zero or greater, got {self._max_image_size_bytes}"
            )

        return self


# ================================================================================================
# PARTITIONER
# ================================================================================================


class _DocxPartitioner:
    """Runs the extraction stages for one document, in a fixed order, as a single generator."""

    def __init__(self, opts: DocxPartitionerOptions, container: DocxContainer) -> None:
        self._opts = opts
        self._container = container
        self._builder = ElementBuilder(
            normalize_whitespace=opts.normalize_whitespace,
            preserve_formatting=opts.preserve_formatting,
        )
        self.stage_results: list[StageResult] = []

    @classmethod
    def iter_document_elements(cls, opts: DocxPartitionerOptions) -> Iterator[Element]:
        """Generate the elements of the document described by `opts`.

        The source is read right away; nothing else happens until the first element is requested.
        """
        blob = opts.blob
        return cls._iter_run(opts, blob)

    @classmethod
    def _iter_run(cls, opts: DocxPartitionerOptions, blob: bytes) -> Iterator[Element]:
        # -- the container lives exactly as long as this generator, whether it is exhausted,
        # -- raises, or is closed by the consumer part-way through
        with DocxContainer.open(blob) as container:
            yield from cls(opts, container)._iter_document_elements()

    def _iter_document_elements(self) -> Iterator[Element]:
        """Generate each element of the document, one stage after another."""
        opts = self._opts

        # -- the body is load-bearing; a missing or malformed main document part is fatal and must
        # -- surface before any element, metadata included, is emitted
        document_analyzer = self._load_document_analyzer()

        if opts.include_metadata:
            yield from self._iter_stage(Stage.METADATA, self._iter_metadata_elements)

        yield from self._iter_stage(
            Stage.CONTENT, lambda result: self._iter_content_elements(document_analyzer, result)
        )

        if opts.include_headers:
            yield from self._iter_stage(Stage.HEADERS, self._iter_header_elements)

        if opts.include_footers:
            yield from self._iter_stage(Stage.FOOTERS, self._iter_footer_elements)

        yield from self._iter_stage(Stage.FOOTNOTES, self._iter_footnote_elements)

        if opts.include_images:
            yield from self._iter_stage(Stage.IMAGES, self._iter_image_elements)

    def _iter_stage(
        self, stage: Stage, iter_elements: Callable[[StageResult], Iterator[Element]]
    ) -> Iterator[Element]:
        result = StageResult(stage)
        self.stage_results.append(result)
        logger.detail("starting %s stage", stage.value)  # type: ignore

        for element in iter_elements(result):
            result.element_count += 1
            yield element

        if result.status is StageStatus.OK:
            logger.detail(  # type: ignore
                "%s stage produced %d elements", stage.value, result.element_count
            )
        else:
            logger.warning(
                "%s stage %s with %d elements: %s",
                stage.value,
                result.status.value,
                result.element_count,
                "; ".join(result.warnings),
            )

    # -- metadata --------------------------------

    def _iter_metadata_elements(self, result: StageResult) -> Iterator[Element]:
        """Generate exactly one `Metadata` element, a blank one when the properties are unusable."""
        try:
            xml = self._container.read_part(CORE_PROPERTIES_PART)
        except InvalidContainerError as e:
            message = f"unreadable core-properties part {repr(CORE_PROPERTIES_PART)}: {e}"
            result.warn(message)
            yield self._builder.build_metadata(None, None, ElementError("warning", message))
            return

        if xml is None:
            message = f"document has no core-properties part {repr(CORE_PROPERTIES_PART)}"
            result.warn(message)
            yield self._builder.build_metadata(None, None, ElementError("warning", message))
            return

        try:
            core = analyze_core_properties(xml)
        except _MARKUP_ERRORS as e:
            message = f"malformed core-properties part {repr(CORE_PROPERTIES_PART)}: {e}"
            result.warn(message)
            yield self._builder.build_metadata(None, None, ElementError("warning", message))
            return

        yield self._builder.build_metadata(core, self._app_properties(result))

    def _app_properties(self, result: StageResult) -> Optional[AppPropertiesNode]:
        """Page and word counts, when the extended-properties part is present and readable."""
        try:
            xml = self._container.read_part(APP_PROPERTIES_PART)
            if xml is None:
                return None
            return analyze_app_properties(xml)
        except _PART_ERRORS as e:
            result.warn(f"ignoring unusable {repr(APP_PROPERTIES_PART)}: {e}")
            return None

    # -- body content --------------------------------

    def _load_document_analyzer(self) -> DocumentAnalyzer:
        """Analyzer over the parsed main document part.

        Raises `MissingPartError` when the package has no main document part, `DocxParseError`
        when that part is not well-formed XML and `InvalidContainerError` when its entry cannot be
        decompressed.
        """
        part_name = self._container.main_document_part_name
        xml = self._container.read_part(part_name)
        if xml is None:
            raise MissingPartError(part_name)

        try:
            return DocumentAnalyzer.from_xml(xml)
        except etree.XMLSyntaxError as e:
            raise DocxParseError(f"main document part {repr(part_name)} is malformed: {e}") from e

    def _iter_content_elements(
        self, analyzer: DocumentAnalyzer, result: StageResult
    ) -> Iterator[Element]:
        """Generate a `Paragraph` or `Header` per body paragraph, then a `Table` per body table."""
        for node in analyzer.iter_paragraphs():
            yield self._builder.build_block(node)

        if self._opts.include_tables:
            yield from self._iter_table_elements(analyzer, result)

    def _iter_table_elements(
        self, analyzer: DocumentAnalyzer, result: StageResult
    ) -> Iterator[Element]:
        # -- scan every table before emitting any, so a failure part-way costs all tables rather
        # -- than leaving a truncated set in the stream
        try:
            tables = list(analyzer.iter_tables())
        except Exception as e:
            result.warn(f"table extraction failed, no tables emitted: {e}")
            return

        for table in tables:
            yield self._builder.build_table(table)

    # -- page headers and footers --------------------------------

    def _iter_header_elements(self, result: StageResult) -> Iterator[Element]:
        for part_name, node in self._iter_header_footer_nodes(HEADER_PART_RE, "header", result):
            yield self._builder.build_page_header(part_name, node)

    def _iter_footer_elements(self, result: StageResult) -> Iterator[Element]:
        for part_name, node in self._iter_header_footer_nodes(FOOTER_PART_RE, "footer", result):
            yield self._builder.build_page_footer(part_name, node)

    def _iter_header_footer_nodes(
        self, pattern: Pattern[str], kind: str, result: StageResult
    ) -> Iterator[tuple[str, HeaderFooterNode]]:
        """Generate (part-name, node) pairs for each usable part matching `pattern`.

        A part that cannot be read or parsed is skipped with a warning; the others still count.
        """
        for part_name in self._container.part_names(pattern):
            try:
                xml = self._container.read_part(part_name)
                node = analyze_header_footer(xml) if xml is not None else None
            except _PART_ERRORS as e:
                result.warn(f"skipping {kind} part {repr(part_name)}: {e}")
                continue
            if node is not None:
                yield part_name, node

    # -- footnotes --------------------------------

    def _iter_footnote_elements(self, result: StageResult) -> Iterator[Element]:
        try:
            xml = self._container.read_part(FOOTNOTES_PART)
            if xml is None:
                return
            footnotes = list(iter_footnotes(xml))
        except _PART_ERRORS as e:
            result.fail(f"unusable footnotes part {repr(FOOTNOTES_PART)}: {e}")
            return

        for footnote in footnotes:
            yield self._builder.build_footnote(footnote)

    # -- images --------------------------------

    def _iter_image_elements(self, result: StageResult) -> Iterator[Element]:
        """Generate an `Image` per recognized media part no larger than the size ceiling.

        Parts are read one at a time so only one image is held in memory by this stage. A media
        entry that cannot be decompressed is skipped with a warning.
        """
        max_size = self._opts.max_image_size_bytes
        for part_name in self._container.part_names(MEDIA_PART_RE):
            if image_format_from_filename(part_name) is None:
                logger.debug("skipping media part %s, not a recognized image format", part_name)
                continue

            try:
                blob = self._container.read_part(part_name)
            except InvalidContainerError as e:
                result.warn(f"skipping unreadable image {repr(part_name)}: {e}")
                continue
            if blob is None:
                continue

            if len(blob) > max_size:
                logger.debug(
                    "skipping image %s, %d bytes exceeds limit of %d",
                    part_name,
                    len(blob),
                    max_size,
                )
                continue

            image = self._builder.build_image(part_name, blob)
            if image is not None:
                yield image
