import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from resume_api.config import settings
from resume_api.database import get_db
from resume_api.dependencies import get_provider_admin, require_identity
from resume_api.errors import InvalidInput, ProviderError
from resume_api.models.user import User
from resume_api.schemas.document import MessageResponse
from resume_api.schemas.user import UserDeleteRequest, UserResponse, UserSyncRequest, UserSyncResponse
from resume_api.services.document_service import document_stores
from resume_api.services.identity_service import VerifiedIdentity
from resume_api.services.provider_service import IdentityProviderAdmin
from resume_api.services.user_service import SyncOutcome, user_directory

logger = logging.getLogger("resume_api.auth")

router = APIRouter(prefix="/auth", tags=["auth"])

SYNC_MESSAGES = {
    SyncOutcome.CREATED: "User synced (created) successfully.",
    SyncOutcome.UPDATED: "User synced (updated) successfully.",
    SyncOutcome.UNCHANGED: "User already synced.",
}


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.post("/sync-user", response_model=UserSyncResponse)
def sync_user(
    response: Response,
    req: UserSyncRequest | None = None,
    identity: VerifiedIdentity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    """Create or refresh the local record for the authenticated user."""
    if not identity.email:
        raise InvalidInput("Missing user ID or email in token.")
    req = req or UserSyncRequest()

    result = user_directory.reconcile(db, identity.subject_id, identity.email, req.first_name, req.last_name)
    if result.outcome is SyncOutcome.CREATED:
        response.status_code = 201
    return UserSyncResponse(message=SYNC_MESSAGES[result.outcome], user=_user_to_response(result.user))


@router.delete("/delete-user", response_model=MessageResponse)
async def delete_user(
    req: UserDeleteRequest | None = None,
    identity: VerifiedIdentity = Depends(require_identity),
    db: Session = Depends(get_db),
    provider: IdentityProviderAdmin = Depends(get_provider_admin),
):
    """Delete an account at the identity provider, then locally.

    Callers may delete themselves; anyone else requires an admin subject id.
    """
    subject_id = req.subject_id if req else None
    if not subject_id:
        raise InvalidInput("User ID is required.")
    if subject_id != identity.subject_id and identity.subject_id not in settings.admin_subject_ids:
        raise HTTPException(status_code=403, detail="Not permitted to delete this user.")

    try:
        await provider.delete_user(subject_id)
    except ProviderError:
        logger.exception("Identity provider failed to delete user %s", subject_id)
        raise HTTPException(status_code=500, detail="Failed to delete user.")

    await run_in_threadpool(_delete_local_user, db, subject_id)
    return MessageResponse(message=f"User {subject_id} deleted successfully.")


def _delete_local_user(db: Session, subject_id: str):
    user_directory.delete_user(db, subject_id)

    if settings.cascade_user_documents:
        for store in document_stores:
            removed = store.delete_all_for_owner(db, subject_id)
            logger.info("Removed %d %s owned by %s", removed, store.collection, subject_id)
    else:
        orphans = sum(store.count_for_owner(db, subject_id) for store in document_stores)
        if orphans:
            logger.warning("User %s deleted; %d documents left without an owner", subject_id, orphans)
