class DocxParseError(Exception):
    """Error raised when a DOCX document cannot be extracted at all.

    Only unrecoverable failures surface as this error (or one of its subclasses). A broken
    secondary part (tables, headers, footers, footnotes, images) is logged and skipped instead.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidContainerError(DocxParseError):
    """Error raised when the source is not a readable ZIP archive (so not a DOCX file)."""


class MissingPartError(DocxParseError):
    """Error raised when a part the extraction cannot do without is absent from the package."""

    def __init__(self, part_name: str):
        self.part_name = part_name
        super().__init__(f"required part not found in DOCX package: {repr(part_name)}")


class SourceReadError(DocxParseError):
    """Error raised when the document source cannot be read into memory."""
