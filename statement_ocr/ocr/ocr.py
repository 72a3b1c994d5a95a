# ocr/ocr.py
from __future__ import annotations

import logging
from typing import Optional

import fitz
import numpy as np

from statement_ocr.errors import RasterizationError

logger = logging.getLogger(__name__)


class PdfRasterizer:
    """
    Renders PDF pages (from raw bytes) to RGB numpy arrays with PyMuPDF.
    The opened document is cached per content so N pages cost one parse.
    """

    def __init__(self, dpi: int = 300):
        self.dpi = dpi
        self._doc = None
        self._content: Optional[bytes] = None

    def _open(self, content: bytes):
        if self._doc is not None and self._content is content:
            return self._doc
        self.close()
        try:
            doc = fitz.open(stream=content, filetype="pdf")
        except Exception as exc:  # PyMuPDF raises several unrelated types for bad input
            raise RasterizationError(f"Cannot open PDF: {exc}") from exc
        if doc.page_count == 0:
            doc.close()
            raise RasterizationError("PDF has no pages")
        self._doc, self._content = doc, content
        return doc

    def page_count(self, content: bytes) -> int:
        return self._open(content).page_count

    def render(self, content: bytes, page_index: int) -> np.ndarray:
        doc = self._open(content)
        if not 0 <= page_index < doc.page_count:
            raise RasterizationError(f"Page {page_index} out of range (0..{doc.page_count - 1})")
        try:
            page = doc.load_page(page_index)
            pix = page.get_pixmap(dpi=self.dpi, colorspace=fitz.csRGB, alpha=False)
        except Exception as exc:
            raise RasterizationError(f"Cannot render page {page_index + 1}: {exc}") from exc
        img = np.frombuffer(pix.samples, dtype=np.uint8).reshape(pix.height, pix.width, 3)
        logger.debug("Rendered page %d at %d dpi -> %dx%d", page_index + 1, self.dpi, pix.width, pix.height)
        return img.copy()

    def close(self) -> None:
        if self._doc is not None:
            self._doc.close()
        self._doc = None
        self._content = None
