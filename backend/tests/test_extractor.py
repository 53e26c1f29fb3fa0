import zipfile

import pytest
from docx import Document
from openpyxl import Workbook
from PIL import Image

from helpers import ocr
from helpers.extractor import SUPPORTED_EXTS, extract_text_from_file


def test_plain_text_and_markdown_are_read_as_utf8(tmp_path):
    path = tmp_path / "notes.md"
    path.write_text("# 標題\nHello world", encoding="utf-8")

    assert extract_text_from_file(str(path), "notes.md") == "# 標題\nHello world"


def test_extension_match_is_case_insensitive(tmp_path):
    path = tmp_path / "upload"
    path.write_text("Upper case extension", encoding="utf-8")

    assert extract_text_from_file(str(path), "README.TXT") == "Upper case extension"


def test_unsupported_extension_returns_placeholder(tmp_path):
    path = tmp_path / "data.xyz"
    path.write_bytes(b"\x00\x01")

    assert extract_text_from_file(str(path), "data.xyz") == "[Unsupported file format: .xyz (data.xyz)]"


def test_missing_extension_returns_placeholder(tmp_path):
    path = tmp_path / "README"
    path.write_text("no extension", encoding="utf-8")

    assert extract_text_from_file(str(path), "README") == "[Unsupported file format: (none) (README)]"


def test_corrupt_pdf_returns_parse_failure(tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"this is not a pdf")

    assert extract_text_from_file(str(path), "broken.pdf") == "[Failed to parse file: broken.pdf]"


def test_html_is_stripped_to_text(tmp_path):
    path = tmp_path / "page.html"
    path.write_text("<html><body><h1>Title</h1><p>Body text</p></body></html>", encoding="utf-8")

    text = extract_text_from_file(str(path), "page.html")
    assert "Title" in text
    assert "Body text" in text
    assert "<p>" not in text


def test_workbook_sheets_render_as_csv(tmp_path):
    wb = Workbook()
    ws = wb.active
    ws.append(["name", "qty"])
    ws.append(["apple", 3])
    path = tmp_path / "stock.xlsx"
    wb.save(path)

    text = extract_text_from_file(str(path), "stock.xlsx")
    assert "name,qty" in text
    assert "apple,3" in text


def test_docx_paragraphs_are_joined(tmp_path):
    document = Document()
    document.add_paragraph("First paragraph")
    document.add_paragraph("Second paragraph")
    path = tmp_path / "memo.docx"
    document.save(path)

    text = extract_text_from_file(str(path), "memo.docx")
    assert "First paragraph\nSecond paragraph" in text


def _write_epub(path):
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("mimetype", "application/epub+zip")
        archive.writestr(
            "META-INF/container.xml",
            """<?xml version="1.0"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>""",
        )
        archive.writestr(
            "OEBPS/content.opf",
            """<?xml version="1.0"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0">
  <manifest>
    <item id="c2" href="text/ch2.xhtml" media-type="application/xhtml+xml"/>
    <item id="c1" href="text/ch1.xhtml" media-type="application/xhtml+xml"/>
  </manifest>
  <spine>
    <itemref idref="c1"/>
    <itemref idref="c2"/>
  </spine>
</package>""",
        )
        archive.writestr("OEBPS/text/ch1.xhtml", "<html><body><p>Chapter one</p></body></html>")
        archive.writestr("OEBPS/text/ch2.xhtml", "<html><body><p>Chapter two</p></body></html>")


def test_epub_chapters_follow_spine_order(tmp_path):
    path = tmp_path / "book.epub"
    _write_epub(path)

    text = extract_text_from_file(str(path), "book.epub")
    assert "Chapter one" in text
    assert text.index("Chapter one") < text.index("Chapter two")


def test_corrupt_epub_returns_parse_failure(tmp_path):
    path = tmp_path / "book.epub"
    path.write_bytes(b"not a zip")

    assert extract_text_from_file(str(path), "book.epub") == "[Failed to parse file: book.epub]"


@pytest.fixture
def png_file(tmp_path):
    path = tmp_path / "photo.png"
    Image.new("RGB", (120, 60), "white").save(path)
    return path


def test_image_ocr_success_report(png_file, monkeypatch):
    monkeypatch.setattr(ocr.pytesseract, "image_to_string", lambda img, lang=None: "Recognized receipt text\n")

    report = extract_text_from_file(str(png_file), "photo.png")
    assert report.startswith("# Image OCR Result")
    assert "Recognized receipt text" in report
    assert "File name: photo.png" in report


def test_image_ocr_short_text_reports_nothing_detected(png_file, monkeypatch):
    monkeypatch.setattr(ocr.pytesseract, "image_to_string", lambda img, lang=None: "ab")

    report = extract_text_from_file(str(png_file), "photo.png")
    assert "No clear text was detected" in report


def test_image_ocr_failure_is_a_report_not_an_exception(png_file, monkeypatch):
    def boom(img, lang=None):
        raise RuntimeError("tesseract is not installed")

    monkeypatch.setattr(ocr.pytesseract, "image_to_string", boom)

    report = extract_text_from_file(str(png_file), "photo.png")
    assert report.startswith("# Image OCR Failed")
    assert "File name: photo.png" in report
    assert "tesseract is not installed" in report


def test_preprocess_scales_tall_images_and_greyscales(tmp_path):
    path = tmp_path / "tall.png"
    Image.new("RGB", (100, 4000), "white").save(path)

    img = ocr._preprocess_image(str(path))
    assert img.size == (50, 2000)
    assert img.mode == "L"


def test_supported_formats_cover_documents_and_images():
    for ext in (".txt", ".md", ".pdf", ".docx", ".xlsx", ".html", ".epub", ".png", ".jpg"):
        assert ext in SUPPORTED_EXTS
