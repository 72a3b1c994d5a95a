import os
import sys
from datetime import date

import numpy as np
import pytest


def pytest_sessionstart(session):
    # Ensure project root is on sys.path so `statement_ocr` resolves without install
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


# --- Test doubles for the OCR session ---
class FakeRasterizer:
    """Every 'PDF' is a list of page texts encoded as bytes, pages split on \\f."""

    def __init__(self, fail_render_on=None):
        self.fail_render_on = fail_render_on
        self.closed = 0

    def _pages(self, content: bytes):
        return content.decode("utf-8").split("\f")

    def page_count(self, content: bytes) -> int:
        return len(self._pages(content))

    def render(self, content: bytes, page_index: int):
        from statement_ocr.errors import RasterizationError
        if self.fail_render_on == page_index:
            raise RasterizationError(f"cannot render page {page_index + 1}")
        # the "image" carries its text so the fake engine can read it back
        img = np.zeros((2, 2), dtype=np.uint8)
        return (img, self._pages(content)[page_index])

    def close(self) -> None:
        self.closed += 1


class FakeEngine:
    def __init__(self, fail_start=False, fail_pages=()):
        self.fail_start = fail_start
        self.fail_pages = set(fail_pages)
        self.starts = 0
        self.closes = 0
        self.started = False
        self.calls = 0

    def start(self) -> None:
        from statement_ocr.errors import EngineInitError
        if self.fail_start:
            raise EngineInitError("tesseract missing")
        if not self.started:
            self.starts += 1
            self.started = True

    def recognize(self, img) -> str:
        self.calls += 1
        if self.calls in self.fail_pages:
            raise RuntimeError("engine crashed on this page")
        return img[1]

    def close(self) -> None:
        self.closes += 1
        self.started = False


class PassThroughPreprocessor:
    def __init__(self):
        self.calls = 0

    def process(self, img):
        self.calls += 1
        return img


@pytest.fixture
def fake_session():
    from statement_ocr.pipeline import ExtractionSession
    return ExtractionSession(
        rasterizer=FakeRasterizer(),
        engine=FakeEngine(),
        preprocessor=PassThroughPreprocessor(),
    )


@pytest.fixture
def store():
    from statement_ocr.store import InMemoryStore
    return InMemoryStore()


@pytest.fixture
def today():
    return lambda: date(2025, 3, 1)


STATEMENT_PAGE_1 = """\
ACME BANK
Statement Period: 12/01/2024 to 01/15/2025
Account ending in 4321
New Balance $1,234.56
Payment Due Date 02/10/2025
12/20 POS PURCHASE WAL-MART #1234 54.21 1,000.00
12/22 Zelle from Jane 42.00 1,042.00
12/23 Zelle payment to Bob 42.00 1,000.00
"""

STATEMENT_PAGE_2 = """\
Transactions continued
01/05 PAYROLL ACME CORP 2,500.00 3,500.00
01/07 SHELL OIL 12345 (45.00) 3,455.00
01/0X GARBAGE ROW ###
01/09 NETFLIX.COM SUBSCRIPTION 15.99
"""


@pytest.fixture
def statement_bytes():
    return (STATEMENT_PAGE_1 + "\f" + STATEMENT_PAGE_2).encode("utf-8")
