from docx_stream.__version__ import __version__
from docx_stream.documents.elements import (
    CheckBox,
    DocumentProperties,
    Element,
    ElementError,
    ElementType,
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
from docx_stream.errors import (
    DocxParseError,
    InvalidContainerError,
    MissingPartError,
    SourceReadError,
)
from docx_stream.file_utils.validation import ValidationIssue, ValidationResult, validate_docx
from docx_stream.partition.docx import (
    extract_images,
    extract_metadata,
    extract_text,
    iter_docx_elements,
    partition_docx,
)

__all__ = [
    "CheckBox",
    "DocumentProperties",
    "DocxParseError",
    "Element",
    "ElementError",
    "ElementType",
    "Footer",
    "Formatting",
    "Header",
    "Image",
    "ImageInfo",
    "ImagePositioning",
    "InvalidContainerError",
    "Metadata",
    "MissingPartError",
    "Paragraph",
    "Position",
    "SourceReadError",
    "Table",
    "TableCell",
    "TableRow",
    "ValidationIssue",
    "ValidationResult",
    "__version__",
    "extract_images",
    "extract_metadata",
    "extract_text",
    "iter_docx_elements",
    "partition_docx",
    "validate_docx",
]
