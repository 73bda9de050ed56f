"""Test suite for `docx_stream.documents.markup` module."""

from __future__ import annotations

import datetime as dt

import pytest
from lxml import etree

from docx_stream.documents.markup import (
    DocumentAnalyzer,
    RunFormatting,
    analyze_app_properties,
    analyze_core_properties,
    analyze_formatting,
    analyze_header_footer,
    heading_level,
    iter_footnotes,
    parse_part,
)
from test_docx_stream.unit_utils import (
    W_NS,
    app_xml,
    core_xml,
    document_xml,
    footnotes_xml,
    header_xml,
    p,
    tbl,
)


def _paragraph(xml: str) -> etree._Element:
    """The first body paragraph of a document holding `xml`."""
    return parse_part(document_xml(xml).encode("utf-8"))[0][0]


# -- heading_level() -------------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("style", "expected_value"),
    [
        ("Heading1", 1),
        ("Heading2", 2),
        ("heading 3", 3),
        ("HEADING", 1),
        ("Heading0", 1),
        ("h4", 4),
        ("H2", 2),
        ("Title", 1),
        ("BookTitle", 1),
        ("Subtitle", 2),
        ("Normal", None),
        ("ListParagraph", None),
        ("html", None),
        ("", None),
        (None, None),
    ],
)
def test_heading_level_is_read_from_the_style_name_only(
    style: str | None, expected_value: int | None
):
    assert heading_level(style) == expected_value


# -- analyze_formatting() --------------------------------------------------------------------------


def test_analyze_formatting_reports_nothing_for_a_plain_paragraph():
    assert analyze_formatting(_paragraph(p("plain"))) == RunFormatting()


def test_analyze_formatting_detects_each_flag_independently():
    paragraph = _paragraph(
        p(
            "styled",
            rpr='<w:b/><w:i/><w:u w:val="single"/><w:dstrike/>'
            '<w:rFonts w:ascii="Georgia"/><w:sz w:val="21"/>',
            ppr='<w:jc w:val="both"/>',
        )
    )

    assert analyze_formatting(paragraph) == RunFormatting(
        bold=True,
        italic=True,
        underline=True,
        strike=True,
        font_family="Georgia",
        font_size=10.5,
        alignment="justify",
    )


@pytest.mark.parametrize(
    "rpr",
    [
        '<w:b w:val="0"/>',
        '<w:b w:val="false"/>',
        '<w:b w:val="off"/>',
    ],
)
def test_analyze_formatting_honors_switched_off_properties(rpr: str):
    assert analyze_formatting(_paragraph(p("x", rpr=rpr))).bold is False


def test_analyze_formatting_treats_underline_none_as_no_underline():
    assert analyze_formatting(_paragraph(p("x", rpr='<w:u w:val="none"/>'))).underline is False


def test_analyze_formatting_ignores_a_font_size_that_is_not_an_integer():
    assert analyze_formatting(_paragraph(p("x", rpr='<w:sz w:val="big"/>'))).font_size is None


# -- DocumentAnalyzer ------------------------------------------------------------------------------


class DescribeDocumentAnalyzer:
    """Unit-test suite for `docx_stream.documents.markup.DocumentAnalyzer` objects."""

    def it_generates_a_node_for_each_non_blank_body_paragraph(self):
        analyzer = DocumentAnalyzer.from_xml(
            document_xml(p("First", style="Heading1"), p(""), p("  "), p("Second")).encode()
        )

        nodes = list(analyzer.iter_paragraphs())

        assert [(n.text, n.heading_level) for n in nodes] == [
            ("First", 1),
            ("Second", None),
        ]

    def and_it_joins_the_text_of_runs_in_hyperlinks_insertions_and_content_controls(self):
        xml = document_xml(
            "<w:p>"
            "<w:r><w:t>See </w:t></w:r>"
            '<w:hyperlink><w:r><w:t xml:space="preserve">the site</w:t></w:r></w:hyperlink>'
            "<w:ins><w:r><w:t>, added</w:t></w:r></w:ins>"
            "<w:del><w:r><w:delText> removed</w:delText></w:r></w:del>"
            "<w:sdt><w:sdtContent><w:r><w:t>.</w:t></w:r></w:sdtContent></w:sdt>"
            "</w:p>"
        )

        (node,) = DocumentAnalyzer.from_xml(xml.encode()).iter_paragraphs()

        assert node.text == "See the site, added."

    def and_it_translates_tabs_and_breaks_in_runs(self):
        xml = document_xml(
            "<w:p><w:r><w:t>a</w:t><w:tab/><w:t>b</w:t><w:br/><w:t>c</w:t></w:r></w:p>"
        )

        (node,) = DocumentAnalyzer.from_xml(xml.encode()).iter_paragraphs()

        assert node.text == "a\tb\nc"

    def and_it_includes_paragraphs_wrapped_in_a_block_content_control(self):
        xml = document_xml(f"<w:sdt><w:sdtContent>{p('Wrapped')}</w:sdtContent></w:sdt>")

        nodes = list(DocumentAnalyzer.from_xml(xml.encode()).iter_paragraphs())

        assert [n.text for n in nodes] == ["Wrapped"]

    def but_it_leaves_paragraphs_inside_tables_to_the_table_scan(self):
        xml = document_xml(p("Outside"), tbl(["Inside"]))

        nodes = list(DocumentAnalyzer.from_xml(xml.encode()).iter_paragraphs())

        assert [n.text for n in nodes] == ["Outside"]

    def it_generates_a_node_for_each_body_table(self):
        xml = document_xml(tbl(["h1", "h2"], ["a", "b"], header_rows=1), tbl(["solo"]))

        tables = list(DocumentAnalyzer.from_xml(xml.encode()).iter_tables())

        assert len(tables) == 2
        first, second = tables
        assert [(list(r.cells), r.is_header) for r in first.rows] == [
            (["h1", "h2"], True),
            (["a", "b"], False),
        ]
        assert [list(r.cells) for r in second.rows] == [["solo"]]

    def and_it_joins_the_paragraphs_of_a_cell_with_line_feeds(self):
        xml = document_xml(f"<w:tbl><w:tr><w:tc>{p('one')}{p('')}{p('two')}</w:tc></w:tr></w:tbl>")

        (table,) = DocumentAnalyzer.from_xml(xml.encode()).iter_tables()

        assert list(table.rows[0].cells) == ["one\ntwo"]

    def and_it_includes_the_text_of_a_nested_table_in_its_cell(self):
        nested = tbl(["inner"])
        xml = document_xml(f"<w:tbl><w:tr><w:tc>{p('outer')}{nested}</w:tc></w:tr></w:tbl>")

        (table,) = DocumentAnalyzer.from_xml(xml.encode()).iter_tables()

        assert list(table.rows[0].cells) == ["outer\ninner"]

    def but_it_drops_rows_without_cells_and_tables_without_rows(self):
        xml = document_xml(
            "<w:tbl><w:tr/></w:tbl>",
            f"<w:tbl><w:tr/><w:tr><w:tc>{p('kept')}</w:tc></w:tr></w:tbl>",
        )

        tables = list(DocumentAnalyzer.from_xml(xml.encode()).iter_tables())

        assert len(tables) == 1
        assert [list(r.cells) for r in tables[0].rows] == [["kept"]]

    def it_raises_on_malformed_xml(self):
        with pytest.raises(etree.XMLSyntaxError):
            DocumentAnalyzer.from_xml(b"<w:document>")


# -- analyze_header_footer() -----------------------------------------------------------------------


def test_analyze_header_footer_joins_paragraph_text_with_line_feeds():
    node = analyze_header_footer(header_xml(p("Acme Corp"), p(""), p("Internal")).encode())

    assert node is not None
    assert node.text == "Acme Corp\nInternal"
    assert node.has_page_number is False
    assert node.watermark is None


@pytest.mark.parametrize(
    "field_xml",
    [
        '<w:p><w:r><w:instrText xml:space="preserve"> PAGE   \\* MERGEFORMAT </w:instrText>'
        "</w:r></w:p>",
        '<w:p><w:fldSimple w:instr=" PAGE "><w:r><w:t>3</w:t></w:r></w:fldSimple></w:p>',
    ],
)
def test_analyze_header_footer_detects_a_page_number_field(field_xml: str):
    node = analyze_header_footer(header_xml(field_xml, root="ftr").encode())

    assert node is not None
    assert node.has_page_number is True


def test_analyze_header_footer_does_not_mistake_other_fields_for_a_page_number():
    xml = header_xml(
        p("Pages"),
        '<w:p><w:r><w:instrText xml:space="preserve"> NUMPAGES </w:instrText></w:r></w:p>',
        root="ftr",
    )

    node = analyze_header_footer(xml.encode())

    assert node is not None
    assert node.has_page_number is False


@pytest.mark.parametrize(
    "shape_xml",
    [
        '<v:shape><v:textpath string="CONFIDENTIAL"/></v:shape>',
        '<v:shape><v:path fitshape="t" string="CONFIDENTIAL"/></v:shape>',
    ],
)
def test_analyze_header_footer_detects_a_watermark(shape_xml: str):
    xml = header_xml(f"<w:p><w:r><w:pict>{shape_xml}</w:pict></w:r></w:p>")

    node = analyze_header_footer(xml.encode())

    assert node is not None
    assert node.text == ""
    assert node.watermark == "CONFIDENTIAL"


def test_analyze_header_footer_returns_None_for_an_empty_part():
    assert analyze_header_footer(header_xml(p("")).encode()) is None


# -- iter_footnotes() ------------------------------------------------------------------------------


def test_iter_footnotes_generates_each_footnote_with_text():
    xml = footnotes_xml({"-1": "", "0": "", "1": "First note.", "2": "Second note."})

    footnotes = list(iter_footnotes(xml.encode()))

    assert [(f.footnote_id, f.text) for f in footnotes] == [
        ("1", "First note."),
        ("2", "Second note."),
    ]


def test_iter_footnotes_includes_the_reserved_zero_footnote_when_it_has_text():
    footnotes = list(iter_footnotes(footnotes_xml({"0": "Lorem ipsum."}).encode()))

    assert [(f.footnote_id, f.text) for f in footnotes] == [("0", "Lorem ipsum.")]


def test_iter_footnotes_reads_the_footnote_formatting():
    xml = (
        f'<w:footnotes xmlns:w="{W_NS}"><w:footnote w:id="1">'
        f"{p('Note', rpr='<w:i/>')}</w:footnote></w:footnotes>"
    )

    (footnote,) = iter_footnotes(xml.encode())

    assert footnote.formatting.italic is True


# -- document properties ---------------------------------------------------------------------------


def test_analyze_core_properties_reads_the_core_properties():
    node = analyze_core_properties(
        core_xml(
            dc_title="  Annual Plan  ",
            dc_creator="Planning Team",
            cp_keywords="budget;forecast, , plan",
            dcterms_modified="2023-06-30T12:00:00Z",
        ).encode()
    )

    assert node.title == "Annual Plan"
    assert node.author == "Planning Team"
    assert node.subject is None
    assert node.keywords == ("budget", "forecast", "plan")
    assert node.created is None
    assert node.modified == dt.datetime(2023, 6, 30, 12, tzinfo=dt.timezone.utc)


def test_analyze_core_properties_treats_blank_values_as_absent():
    node = analyze_core_properties(core_xml(dc_title=" ", cp_keywords=" ; ").encode())

    assert node.title is None
    assert node.keywords is None


def test_analyze_app_properties_reads_page_and_word_counts():
    node = analyze_app_properties(app_xml(pages="12", words="3400").encode())

    assert (node.pages, node.words) == (12, 3400)


def test_analyze_app_properties_ignores_counts_that_are_not_integers():
    node = analyze_app_properties(app_xml(pages="many", words="").encode())

    assert (node.pages, node.words) == (None, None)
