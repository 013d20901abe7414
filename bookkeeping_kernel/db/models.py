"""
Module: bookkeeping_kernel.db.models
Responsibility: ORM persistence for the whole business document.
Architecture position: Kernel > DB.  May import from db/base.py only.

The document is stored as one JSON payload per name.  Saves overwrite the
payload (last write wins) and bump ``version``; there is no history.
"""

from typing import Any

from sqlalchemy import JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from bookkeeping_kernel.db.base import TrackedBase


class BusinessDocumentRecord(TrackedBase):
    """One stored business document."""

    __tablename__ = "business_documents"
    __table_args__ = (UniqueConstraint("name", name="uq_business_document_name"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    version: Mapped[int] = mapped_column(nullable=False, default=0)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<BusinessDocumentRecord {self.name} v{self.version}>"
