from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from resume_api.database import get_db
from resume_api.dependencies import require_subject
from resume_api.errors import NotFound
from resume_api.models.document import DocumentMixin
from resume_api.schemas.document import DocumentResponse, DocumentWrite, MessageResponse
from resume_api.services.document_service import DocumentStore, cover_letter_store, resume_store


def _doc_to_response(doc: DocumentMixin) -> DocumentResponse:
    return DocumentResponse(
        id=doc.id,
        owner_id=doc.owner_id,
        title=doc.title,
        data=doc.data,
        created_at=doc.created_at,
        updated_at=doc.updated_at,
    )


def build_router(store: DocumentStore, prefix: str, tag: str) -> APIRouter:
    """CRUD routes for one document collection, always scoped to the caller."""
    router = APIRouter(prefix=prefix, tags=[tag])
    label = store.label

    @router.post("", response_model=DocumentResponse, status_code=201)
    def create_document(
        req: DocumentWrite | None = None,
        owner_id: str = Depends(require_subject),
        db: Session = Depends(get_db),
    ):
        req = req or DocumentWrite()
        doc = store.create(db, owner_id, req.title, req.data)
        return _doc_to_response(doc)

    @router.get("", response_model=list[DocumentResponse])
    def list_documents(owner_id: str = Depends(require_subject), db: Session = Depends(get_db)):
        return [_doc_to_response(d) for d in store.list_by_owner(db, owner_id)]

    @router.get("/{doc_id}", response_model=DocumentResponse)
    def get_document(
        doc_id: str,
        owner_id: str = Depends(require_subject),
        db: Session = Depends(get_db),
    ):
        doc = store.get_by_id(db, doc_id, owner_id)
        if not doc:
            raise NotFound(f"{label} not found or you do not have access.")
        return _doc_to_response(doc)

    @router.put("/{doc_id}", response_model=MessageResponse)
    def update_document(
        doc_id: str,
        req: DocumentWrite | None = None,
        owner_id: str = Depends(require_subject),
        db: Session = Depends(get_db),
    ):
        req = req or DocumentWrite()
        if not store.update(db, doc_id, owner_id, req.title, req.data):
            raise NotFound(f"{label} not found or you do not have access to update.")
        return MessageResponse(message=f"{label} updated successfully.")

    @router.delete("/{doc_id}", response_model=MessageResponse)
    def delete_document(
        doc_id: str,
        owner_id: str = Depends(require_subject),
        db: Session = Depends(get_db),
    ):
        if not store.delete(db, doc_id, owner_id):
            raise NotFound(f"{label} not found or you do not have access to delete.")
        return MessageResponse(message=f"{label} deleted successfully.")

    return router


resumes_router = build_router(resume_store, "/resumes", "resumes")
letters_router = build_router(cover_letter_store, "/letters", "letters")
