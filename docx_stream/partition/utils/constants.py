import re
from enum import Enum


class Stage(Enum):
    METADATA = "metadata"
    CONTENT = "content"
    TABLES = "tables"
    HEADERS = "headers"
    FOOTERS = "footers"
    FOOTNOTES = "footnotes"
    IMAGES = "images"


class OrderBand:
    """First `position.order` value of each extraction stage."""

    METADATA = 0
    CONTENT = 1
    IMAGES = 1000
    HEADERS = 2000
    FOOTERS = 3000
    FOOTNOTES = 4000


ORDER_BAND_WIDTH = 1000

# -- parts --
MAIN_DOCUMENT_PART = "word/document.xml"
PACKAGE_RELS_PART = "_rels/.rels"
CORE_PROPERTIES_PART = "docProps/core.xml"
APP_PROPERTIES_PART = "docProps/app.xml"
FOOTNOTES_PART = "word/footnotes.xml"

HEADER_PART_RE = re.compile(r"^word/header\d*\.xml$")
FOOTER_PART_RE = re.compile(r"^word/footer\d*\.xml$")
MEDIA_PART_RE = re.compile(r"^word/media/")

RT_OFFICE_DOCUMENT = (
    "http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument"
)

# -- formatting --
DEFAULT_FONT_FAMILY = "Calibri"
DEFAULT_FONT_SIZE = 12
DEFAULT_FOOTNOTE_FONT_SIZE = 10

# -- images, keyed by lower-case file extension --
IMAGE_FORMATS = {
    "png": "png",
    "jpg": "jpg",
    "jpeg": "jpg",
    "gif": "gif",
    "svg": "svg",
    "wmf": "wmf",
    "emf": "emf",
}

ZIP_SIGNATURE = b"PK\x03\x04"

MiB = 1024 * 1024
