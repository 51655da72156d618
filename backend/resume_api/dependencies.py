import logging

from fastapi import Depends, Header, Request

from resume_api.errors import AuthFailure, Unauthenticated
from resume_api.services.identity_service import IdentityVerifier, VerifiedIdentity
from resume_api.services.provider_service import IdentityProviderAdmin

logger = logging.getLogger("resume_api.gate")


def get_identity_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.identity_verifier


def get_provider_admin(request: Request) -> IdentityProviderAdmin:
    return request.app.state.provider_admin


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[7:].strip() or None


async def require_identity(
    request: Request,
    authorization: str | None = Header(default=None),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> VerifiedIdentity:
    """Verify the bearer token; the verifier logs why a token was refused."""
    token = _bearer_token(authorization)
    if token is None:
        logger.info("Rejected %s %s: no bearer token", request.method, request.url.path)
        raise Unauthenticated(AuthFailure.MISSING, "No token provided. Authorization denied.")
    return await verifier.verify(token)


async def require_subject(identity: VerifiedIdentity = Depends(require_identity)) -> str:
    return identity.subject_id
