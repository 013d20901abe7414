"""
Module: bookkeeping_kernel.db.repository
Responsibility: Load and save ``BusinessSnapshot`` values through a
    SQLAlchemy session.  This is the persistence collaborator the engines
    are isolated from: callers load once, run engines on the snapshot, and
    save on commit.
Architecture position: Kernel > DB.  Uses the document codec to convert
    between stored JSON and snapshots.

Invariants enforced:
    - Whole-document, last-write-wins saves; no locking.
    - Every save stores ``snapshot.version + 1`` and returns the snapshot
      carrying that version.

Failure modes:
    - DocumentNotFoundError from load() when nothing is stored under the name.
    - DocumentShapeError from load() when the stored payload is malformed.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from bookkeeping_kernel.db.models import BusinessDocumentRecord
from bookkeeping_kernel.documents import dump_document, parse_document
from bookkeeping_kernel.domain.model import BusinessSnapshot
from bookkeeping_kernel.exceptions import DocumentNotFoundError
from bookkeeping_kernel.logging_config import get_logger

logger = get_logger("db.repository")

DEFAULT_DOCUMENT = "default"


class DocumentRepository:
    """Whole-document persistence over one session."""

    def __init__(self, session: Session):
        self._session = session

    def _record(self, name: str) -> BusinessDocumentRecord | None:
        return self._session.scalars(
            select(BusinessDocumentRecord).where(BusinessDocumentRecord.name == name)
        ).one_or_none()

    def exists(self, name: str = DEFAULT_DOCUMENT) -> bool:
        return self._record(name) is not None

    def load(self, name: str = DEFAULT_DOCUMENT) -> BusinessSnapshot:
        record = self._record(name)
        if record is None:
            raise DocumentNotFoundError(name)
        snapshot = parse_document({**record.payload, "version": record.version})
        logger.info(
            "document_loaded",
            extra={"document": name, "document_version": record.version},
        )
        return snapshot

    def load_or_empty(self, name: str = DEFAULT_DOCUMENT) -> BusinessSnapshot:
        """Load the document, or an empty version-0 snapshot if none is stored."""
        if not self.exists(name):
            return BusinessSnapshot()
        return self.load(name)

    def save(self, snapshot: BusinessSnapshot, name: str = DEFAULT_DOCUMENT) -> BusinessSnapshot:
        """
        Persist ``snapshot`` under ``name``, replacing whatever was stored.

        Postconditions:
            Returns the snapshot with its version advanced by one.  The
            session is flushed but not committed.
        """
        saved = snapshot.next_version()
        payload = dump_document(saved)
        record = self._record(name)
        if record is None:
            record = BusinessDocumentRecord(name=name, version=saved.version, payload=payload)
            self._session.add(record)
        else:
            if record.version >= saved.version:
                logger.warning(
                    "document_overwritten",
                    extra={
                        "document": name,
                        "stored_version": record.version,
                        "saved_version": saved.version,
                    },
                )
            record.version = saved.version
            record.payload = payload
        self._session.flush()
        logger.info(
            "document_saved",
            extra={"document": name, "document_version": saved.version},
        )
        return saved

    def delete(self, name: str = DEFAULT_DOCUMENT) -> bool:
        record = self._record(name)
        if record is None:
            return False
        self._session.delete(record)
        self._session.flush()
        return True
