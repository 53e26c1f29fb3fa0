"""
Text extraction from uploaded files.

Dispatch is by the lowercased extension of the declared file name. Every
failure is turned into a bracketed placeholder so one bad file never aborts a
multi-file analysis.
"""

import csv
import io
import logging
import os
import posixpath
import zipfile
from typing import Callable, Dict, List
from xml.etree import ElementTree as ET

from bs4 import BeautifulSoup
from docx import Document
from openpyxl import load_workbook
from pypdf import PdfReader

from helpers.ocr import extract_text_from_image

logger = logging.getLogger(__name__)

IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp"}

_CONTAINER_NS = {"c": "urn:oasis:names:tc:opendocument:xmlns:container"}
_OPF_NS = {"opf": "http://www.idpf.org/2007/opf"}


def _read_plain_text(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def _read_pdf(path: str) -> str:
    reader = PdfReader(path)
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(pages)


def _read_docx(path: str) -> str:
    document = Document(path)
    return "\n".join(p.text for p in document.paragraphs)


def _read_workbook(path: str) -> str:
    """Each sheet rendered as CSV, one block per sheet."""
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        blocks = []
        for sheet in workbook.worksheets:
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            for row in sheet.iter_rows(values_only=True):
                writer.writerow(["" if cell is None else cell for cell in row])
            blocks.append(buffer.getvalue())
        return "\n".join(blocks)
    finally:
        workbook.close()


def _html_to_text(markup: str) -> str:
    return BeautifulSoup(markup, "html.parser").get_text()


def _read_html(path: str) -> str:
    return _html_to_text(_read_plain_text(path))


def _epub_chapter_paths(archive: zipfile.ZipFile) -> List[str]:
    """Chapter paths inside the archive, in spine order."""
    container = ET.fromstring(archive.read("META-INF/container.xml"))
    rootfile = container.find(".//c:rootfile", _CONTAINER_NS)
    if rootfile is None:
        raise ValueError("EPUB container has no rootfile")
    opf_path = rootfile.attrib["full-path"]
    opf_dir = posixpath.dirname(opf_path)

    package = ET.fromstring(archive.read(opf_path))
    manifest = {
        item.attrib["id"]: item.attrib["href"]
        for item in package.findall(".//opf:manifest/opf:item", _OPF_NS)
    }
    chapters = []
    for itemref in package.findall(".//opf:spine/opf:itemref", _OPF_NS):
        href = manifest.get(itemref.attrib.get("idref"))
        if href:
            chapters.append(posixpath.normpath(posixpath.join(opf_dir, href)))
    return chapters


def _read_epub(path: str) -> str:
    with zipfile.ZipFile(path) as archive:
        texts = []
        for chapter in _epub_chapter_paths(archive):
            try:
                markup = archive.read(chapter).decode("utf-8", errors="replace")
            except KeyError:
                logger.warning(f"[Extract] EPUB chapter missing: {chapter}")
                continue
            texts.append(_html_to_text(markup))
        return "\n".join(texts)


_EXTRACTORS: Dict[str, Callable[[str], str]] = {
    ".txt": _read_plain_text,
    ".md": _read_plain_text,
    ".pdf": _read_pdf,
    ".doc": _read_docx,
    ".docx": _read_docx,
    ".xlsx": _read_workbook,
    ".xls": _read_workbook,
    ".html": _read_html,
    ".htm": _read_html,
    ".epub": _read_epub,
}

SUPPORTED_EXTS = sorted(set(_EXTRACTORS) | IMAGE_EXTS)


def extract_text_from_file(path: str, original_name: str) -> str:
    """Return the file's text, or a placeholder naming the file. Never raises."""
    ext = os.path.splitext(original_name)[1].lower()

    if ext in IMAGE_EXTS:
        return extract_text_from_image(path, original_name)

    extractor = _EXTRACTORS.get(ext)
    if extractor is None:
        logger.warning(f"[Extract] Unsupported format {ext or '(none)'}: {original_name}")
        return f"[Unsupported file format: {ext or '(none)'} ({original_name})]"

    try:
        text = extractor(path)
        logger.info(f"[Extract] {original_name}: {len(text)} chars")
        return text
    except Exception as e:
        logger.error(f"[Extract] Failed to parse {original_name}: {e}")
        return f"[Failed to parse file: {original_name}]"
