# store.py
from __future__ import annotations

import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from statement_ocr.models import Document, ExtractedTransaction

logger = logging.getLogger(__name__)


class TransactionStore(Protocol):
    """What the pipeline needs from persistence: read all, append, look up by hash."""

    def get_all(self) -> List[ExtractedTransaction]: ...

    def add(self, tx: ExtractedTransaction) -> str: ...

    def find_document_by_hash(self, content_hash: str) -> Optional[Document]: ...

    def add_document(self, doc: Document) -> str: ...

    def update_document(self, doc: Document) -> None: ...

    def get_document(self, doc_id: str) -> Optional[Document]: ...

    def delete_document(self, doc_id: str) -> None: ...

    def clear(self) -> None: ...


class InMemoryStore:
    def __init__(self):
        self._lock = threading.RLock()
        self.transactions: Dict[str, ExtractedTransaction] = {}
        self.documents: Dict[str, Document] = {}

    def get_all(self) -> List[ExtractedTransaction]:
        with self._lock:
            return list(self.transactions.values())

    def add(self, tx: ExtractedTransaction) -> str:
        with self._lock:
            tx_id = uuid.uuid4().hex
            self.transactions[tx_id] = tx
            return tx_id

    def find_document_by_hash(self, content_hash: str) -> Optional[Document]:
        with self._lock:
            return next((d for d in self.documents.values() if d.content_hash == content_hash), None)

    def add_document(self, doc: Document) -> str:
        with self._lock:
            if self.find_document_by_hash(doc.content_hash) is not None:
                raise ValueError(f"A document with hash {doc.content_hash[:12]}… already exists")
            self.documents[doc.id] = doc
            return doc.id

    def update_document(self, doc: Document) -> None:
        with self._lock:
            if doc.id not in self.documents:
                raise KeyError(doc.id)
            self.documents[doc.id] = doc

    def get_document(self, doc_id: str) -> Optional[Document]:
        with self._lock:
            return self.documents.get(doc_id)

    def delete_document(self, doc_id: str) -> None:
        with self._lock:
            self.documents.pop(doc_id, None)

    def clear(self) -> None:
        with self._lock:
            self.transactions.clear()
            self.documents.clear()


class JsonFileStore(InMemoryStore):
    """
    InMemoryStore persisted to one JSON file:
    {"documents": {id: {...}}, "transactions": {id: {...}}}.
    Every mutation rewrites the file.
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        self.documents = {k: Document.from_dict(v) for k, v in (data.get("documents") or {}).items()}
        self.transactions = {
            k: ExtractedTransaction.from_dict(v) for k, v in (data.get("transactions") or {}).items()
        }
        logger.debug("Loaded %d documents / %d transactions from %s",
                     len(self.documents), len(self.transactions), self.path)

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "documents": {k: d.to_dict() for k, d in self.documents.items()},
            "transactions": {k: t.to_dict() for k, t in self.transactions.items()},
        }
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        tmp.replace(self.path)

    def add(self, tx: ExtractedTransaction) -> str:
        with self._lock:
            tx_id = super().add(tx)
            self._save()
            return tx_id

    def add_document(self, doc: Document) -> str:
        with self._lock:
            doc_id = super().add_document(doc)
            self._save()
            return doc_id

    def update_document(self, doc: Document) -> None:
        with self._lock:
            super().update_document(doc)
            self._save()

    def delete_document(self, doc_id: str) -> None:
        with self._lock:
            super().delete_document(doc_id)
            self._save()

    def clear(self) -> None:
        with self._lock:
            super().clear()
            self._save()
