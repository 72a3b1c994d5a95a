# pipeline.py
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from statement_ocr.classify import CategoryRule, clean_description, finalize_transaction
from statement_ocr.config import PipelineSettings
from statement_ocr.constants import CREDIT_CARD_PAYMENT
from statement_ocr.errors import StatementOcrError
from statement_ocr.extract.lines import (
    CandidateLine,
    StatementSummary,
    extract_summary,
    extract_transaction_lines,
)
from statement_ocr.extract.period import detect_statement_period
from statement_ocr.models import (
    Document,
    DocumentResult,
    DocumentStatus,
    ExtractedTransaction,
    StatementPeriod,
    TransactionType,
)
from statement_ocr.ocr.ocr import PdfRasterizer
from statement_ocr.ocr.ocr_engine import TesseractEngine
from statement_ocr.ocr.preprocess import ImagePreprocessor
from statement_ocr.store import TransactionStore
from statement_ocr.utils import (
    date_from_filename,
    parse_currency,
    parse_date,
    parse_date_parts,
    resolve_date,
    sha256_bytes,
)
from statement_ocr.validator import filter_new

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class ExtractionSession:
    """
    The stateful OCR resources of one pipeline: rasterizer, preprocessor and
    OCR engine. Built once, handed to the pipeline, reused across documents.
    The engine starts on first use and is closed after each document.
    """

    def __init__(self, settings: Optional[PipelineSettings] = None,
                 rasterizer=None, engine=None, preprocessor=None):
        settings = settings or PipelineSettings()
        profile = settings.profile
        self.rasterizer = rasterizer or PdfRasterizer(dpi=profile.preprocess.dpi)
        self.engine = engine or TesseractEngine(profile.tesseract)
        self.preprocessor = preprocessor or ImagePreprocessor(profile.preprocess)

    def close(self) -> None:
        self.rasterizer.close()
        self.engine.close()


@dataclass
class DocumentRun:
    """Everything one pass over a document produced (the CLI audits this)."""
    document: Optional[Document]
    transactions: List[ExtractedTransaction] = field(default_factory=list)
    pages: List[str] = field(default_factory=list)
    duplicate: bool = False


class StatementPipeline:
    """
    hash -> dedupe gate -> per page (render, preprocess, OCR) -> period ->
    rows -> normalise/classify -> fuzzy dedupe -> persist.

    Documents are processed strictly one at a time.
    """

    def __init__(self, store: TransactionStore,
                 session: Optional[ExtractionSession] = None,
                 settings: Optional[PipelineSettings] = None,
                 rules: Sequence[CategoryRule] = (),
                 today: Callable[[], date] = date.today):
        self.store = store
        self.settings = settings or PipelineSettings()
        self.session = session or ExtractionSession(self.settings)
        self.rules = list(rules)
        self.today = today
        self._lock = threading.Lock()

    # ----------------------------
    # Public API
    # ----------------------------
    def process_document(self, content: bytes, name: str,
                         on_progress: Optional[ProgressCallback] = None) -> List[ExtractedTransaction]:
        """
        New transactions from one statement. Extraction failures raise
        StatementOcrError subclasses; store errors propagate unchanged.
        Re-sending content whose earlier attempt failed processes it again.
        """
        return self.run_document(content, name, on_progress).transactions

    def run_document(self, content: bytes, name: str,
                     on_progress: Optional[ProgressCallback] = None) -> DocumentRun:
        with self._lock:
            return self._run(content, name, on_progress)

    def process_many(self, items: Iterable[Tuple[bytes, str]],
                     on_progress: Optional[Callable[[str, int, int], None]] = None) -> List[DocumentResult]:
        """Queue of (content, name); one failed document never stops the rest."""
        results = []
        for content, name in items:
            cb = (lambda cur, tot, _n=name: on_progress(_n, cur, tot)) if on_progress else None
            try:
                run = self.run_document(content, name, cb)
            except StatementOcrError as exc:
                results.append(DocumentResult(name=name, status=DocumentStatus.ERROR, error=str(exc)))
                continue
            except Exception as exc:  # store I/O and the like
                logger.exception("Unexpected failure on %s", name)
                results.append(DocumentResult(name=name, status=DocumentStatus.ERROR, error=str(exc)))
                continue
            results.append(DocumentResult(
                name=name,
                status=DocumentStatus.COMPLETED if run.duplicate else run.document.status,
                transaction_count=len(run.transactions),
                duplicate=run.duplicate,
                document_id=run.document.id if run.document else None,
            ))
        return results

    # ----------------------------
    # One document
    # ----------------------------
    def _run(self, content: bytes, name: str, on_progress: Optional[ProgressCallback]) -> DocumentRun:
        content_hash = sha256_bytes(content)

        existing = self.store.find_document_by_hash(content_hash)
        if existing is not None:
            if existing.status != DocumentStatus.ERROR:
                logger.info("Skipping %s: same content as document %s (%s)", name, existing.id, existing.name)
                return DocumentRun(document=existing, duplicate=True)
            # rows a failed attempt did store are dropped by filter_new below
            logger.info("Retrying %s: document %s failed earlier (%s)", name, existing.id, existing.error)
            self.store.delete_document(existing.id)

        doc = Document(
            id=uuid.uuid4().hex,
            content_hash=content_hash,
            name=name,
            document_date=date_from_filename(name),
        )
        self.store.add_document(doc)
        doc.start_processing()
        self.store.update_document(doc)

        try:
            pages = self._read_pages(content, on_progress)
            transactions = self._extract(doc, pages)
            new = filter_new(transactions, self.store.get_all(), self.settings.similarity_threshold)
            for tx in new:
                self.store.add(tx)
        except Exception as exc:
            doc.fail(str(exc))
            self.store.update_document(doc)
            logger.error("Document %s failed: %s", name, exc)
            raise
        finally:
            self.session.close()

        doc.complete(len(new))
        self.store.update_document(doc)
        logger.info("Document %s completed: %d new transaction(s) from %d page(s)", name, len(new), len(pages))
        return DocumentRun(document=doc, transactions=new, pages=pages)

    def _read_pages(self, content: bytes, on_progress: Optional[ProgressCallback]) -> List[str]:
        rasterizer, engine, pre = self.session.rasterizer, self.session.engine, self.session.preprocessor

        total = rasterizer.page_count(content)
        engine.start()

        pages: List[str] = []
        for idx in range(total):
            img = rasterizer.render(content, idx)
            if self.settings.preprocess_enabled:
                img = pre.process(img)
            try:
                text = engine.recognize(img)
            except StatementOcrError:
                raise
            except Exception as exc:  # a page that won't OCR contributes no text
                logger.warning("OCR failed on page %d/%d: %s", idx + 1, total, exc)
                text = ""
            pages.append(text)
            if on_progress:
                on_progress(idx + 1, total)
        return pages

    # ----------------------------
    # Text -> transactions
    # ----------------------------
    def _extract(self, doc: Document, pages: List[str]) -> List[ExtractedTransaction]:
        reference = self.today()
        full_text = "\n".join(pages)

        period = detect_statement_period(full_text)
        if period is None and doc.document_date is not None:
            period = StatementPeriod.month_of(doc.document_date)
            logger.info("Using filename month as statement period: %s .. %s", period.start_date, period.end_date)
        doc.statement_period = period

        summary = extract_summary(full_text)
        out: List[ExtractedTransaction] = []

        summary_tx = self._summary_transaction(summary, period, reference)
        if summary_tx:
            out.append(summary_tx)

        for page_no, text in enumerate(pages, start=1):
            for cand in extract_transaction_lines(text):
                try:
                    tx = self._to_transaction(cand, period, reference, summary.account_suffix)
                except Exception as exc:  # one bad row never sinks the page
                    logger.debug("Skipping page %d line %d (%r): %s", page_no, cand.line_no, cand, exc)
                    continue
                if tx is not None:
                    out.append(tx)
        return out

    def _to_transaction(self, cand: CandidateLine, period: Optional[StatementPeriod],
                        reference: date, account_suffix: Optional[str]) -> Optional[ExtractedTransaction]:
        parts = parse_date_parts(cand.date)
        if parts is None:
            logger.debug("Unparseable date %r on line %d", cand.date, cand.line_no)
            return None
        context_year = None if period else cand.context_year
        tx_date = resolve_date(parts, reference, period, context_year)
        if tx_date is None:
            return None

        description = clean_description(cand.description)
        if not description:
            logger.debug("Nothing left of description %r on line %d", cand.description, cand.line_no)
            return None

        tx = ExtractedTransaction(
            date=tx_date,
            amount=parse_currency(cand.amount, self.settings.max_abs_amount),
            description=description,
            account_number_suffix=account_suffix,
        )
        return finalize_transaction(tx, self.rules)

    def _summary_transaction(self, summary: StatementSummary, period: Optional[StatementPeriod],
                             reference: date) -> Optional[ExtractedTransaction]:
        if summary.balance is None:
            return None
        amount = parse_currency(summary.balance, self.settings.max_abs_amount)
        if not 0 < amount < self.settings.summary_max_amount:
            logger.warning("Summary balance %r is implausible; no summary line", summary.balance)
            return None

        due = parse_date(summary.due_date, reference) if summary.due_date else None
        tx = ExtractedTransaction(
            date=due or (period.end_date if period else reference),
            amount=amount,
            description=f"Credit Card Bill - Account ending in {summary.account_suffix or 'N/A'}",
            type=TransactionType.EXPENSE,
            category=CREDIT_CARD_PAYMENT,
            is_summary_line=True,
            account_number_suffix=summary.account_suffix,
        )
        return finalize_transaction(tx)
