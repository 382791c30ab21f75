from pathlib import Path
from typing import Iterable, List, Union
import logging

import fitz  # PyMuPDF

from govdoc_ner.schemas import Bounds, PageText, TextItem
from govdoc_ner.utils.error_handler import PDFProcessingError

logger = logging.getLogger(__name__)


def extract_pages(source: Union[str, Path, bytes]) -> List[PageText]:
    """Positioned text spans of every page (PyMuPDF coordinates, top-left origin)"""
    try:
        if isinstance(source, (bytes, bytearray)):
            doc = fitz.open(stream=bytes(source), filetype="pdf")
        else:
            doc = fitz.open(str(source))
    except (RuntimeError, ValueError, OSError) as e:
        raise PDFProcessingError(f"Cannot open PDF: {e}") from e

    pages: List[PageText] = []
    with doc:
        for page in doc:
            pages.append(extract_page(page))

    logger.info(f"Extracted {sum(len(p.items) for p in pages)} text items from {len(pages)} pages")
    return pages


def extract_page(page: "fitz.Page") -> PageText:
    page_number = page.number + 1
    items: List[TextItem] = []

    for block in page.get_text("dict")["blocks"]:
        # Image blocks have no lines
        for line in block.get("lines", []):
            for span in line["spans"]:
                text = span["text"]
                if not text.strip():
                    continue
                x0, y0, x1, y1 = span["bbox"]
                items.append(TextItem(
                    text=text,
                    x=x0,
                    y=y0,
                    width=x1 - x0,
                    height=y1 - y0,
                    page_number=page_number,
                ))

    return PageText.from_items(page_number, items)


def items_in_bounds(items: Iterable[TextItem], bounds: Bounds) -> List[TextItem]:
    """Items lying entirely inside the rectangle"""
    return [
        item for item in items
        if item.x >= bounds.x
        and item.x + item.width <= bounds.x + bounds.width
        and item.y >= bounds.y
        and item.y + item.height <= bounds.y + bounds.height
    ]


def crop_pages(pages: Iterable[PageText], bounds: Bounds) -> List[PageText]:
    """Same pages keeping only the items inside ``bounds``"""
    return [PageText.from_items(page.page_number, items_in_bounds(page.items, bounds)) for page in pages]
