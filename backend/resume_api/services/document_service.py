import logging
import uuid
from typing import Any

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from resume_api.errors import InvalidInput
from resume_api.models.document import CoverLetter, DocumentMixin, Resume
from resume_api.utils.timestamps import utcnow_iso

logger = logging.getLogger("resume_api.documents")


def _is_blank(value: Any) -> bool:
    """Falsy in the client's sense: empty objects and lists still count as content."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False


class DocumentStore:
    """Ownership-scoped CRUD over one document table.

    Every query filters on ``owner_id``; a document owned by someone else
    looks exactly like one that does not exist.
    """

    def __init__(self, model: type[DocumentMixin], label: str):
        self.model = model
        self.label = label

    @property
    def collection(self) -> str:
        return self.model.__tablename__

    def create(self, db: Session, owner_id: str, title: Any, data: Any) -> DocumentMixin:
        title = self._require_fields(title, data, "create")
        now = utcnow_iso()
        doc = self.model(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            title=title,
            data=data,
            created_at=now,
            updated_at=now,
        )
        db.add(doc)
        db.commit()
        db.refresh(doc)
        logger.debug("Created %s %s for %s", self.collection, doc.id, owner_id)
        return doc

    def get_by_id(self, db: Session, doc_id: str, owner_id: str) -> DocumentMixin | None:
        return (
            db.query(self.model)
            .filter(self.model.id == doc_id, self.model.owner_id == owner_id)
            .first()
        )

    def list_by_owner(self, db: Session, owner_id: str) -> list[DocumentMixin]:
        return (
            db.query(self.model)
            .filter(self.model.owner_id == owner_id)
            .order_by(self.model.updated_at.desc(), self.model.created_at.desc())
            .all()
        )

    def update(self, db: Session, doc_id: str, owner_id: str, title: Any, data: Any) -> bool:
        title = self._require_fields(title, data, "update")
        # Single conditional statement: ownership check and write are one step.
        result = db.execute(
            update(self.model)
            .where(self.model.id == doc_id, self.model.owner_id == owner_id)
            .values(title=title, data=data, updated_at=utcnow_iso())
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount > 0

    def delete(self, db: Session, doc_id: str, owner_id: str) -> bool:
        result = db.execute(
            delete(self.model)
            .where(self.model.id == doc_id, self.model.owner_id == owner_id)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount > 0

    def delete_all_for_owner(self, db: Session, owner_id: str) -> int:
        result = db.execute(
            delete(self.model)
            .where(self.model.owner_id == owner_id)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount

    def count_for_owner(self, db: Session, owner_id: str) -> int:
        return db.query(self.model).filter(self.model.owner_id == owner_id).count()

    def _require_fields(self, title: Any, data: Any, action: str) -> str:
        """Validate a write and return the title as stored text."""
        if _is_blank(title) or _is_blank(data):
            raise InvalidInput(f"Title and data are required to {action} a {self.label.lower()}.")
        if isinstance(title, str):
            return title
        # Numeric titles are kept as their text form; anything else is not a title.
        if isinstance(title, (int, float)) and not isinstance(title, bool):
            return str(title)
        raise InvalidInput(f"{self.label} title must be text.")


resume_store = DocumentStore(Resume, "Resume")
cover_letter_store = DocumentStore(CoverLetter, "Cover letter")

document_stores = (resume_store, cover_letter_store)
