import logging

import httpx

from resume_api.config import Settings
from resume_api.errors import ProviderError

logger = logging.getLogger("resume_api.provider")


class IdentityProviderAdmin:
    """Account management calls against the Firebase Identity Toolkit API."""

    def __init__(
        self,
        base_url: str,
        project_id: str,
        access_token: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._project_id = project_id
        self._access_token = access_token
        self._http = http_client or httpx.AsyncClient(timeout=10.0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "IdentityProviderAdmin":
        token = settings.provider_admin_token
        return cls(
            base_url=settings.provider_admin_url,
            project_id=settings.firebase_project_id,
            access_token=token.get_secret_value() if token else None,
        )

    @property
    def configured(self) -> bool:
        return bool(self._access_token and self._project_id)

    async def delete_user(self, subject_id: str):
        """Delete the provider account.

        Raises:
            ProviderError: No admin credentials are configured, or the provider
                refused or could not be reached.
        """
        if not self.configured:
            logger.error(
                "Identity provider admin credentials not configured; "
                "cannot delete account %s",
                subject_id,
            )
            raise ProviderError("Identity provider admin credentials not configured")

        url = f"{self._base_url}/projects/{self._project_id}/accounts:delete"
        try:
            response = await self._http.post(
                url,
                json={"localId": subject_id},
                headers={"Authorization": f"Bearer {self._access_token}"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ProviderError(f"Provider refused to delete {subject_id}: {e}") from e
        logger.info("Deleted account %s at the identity provider", subject_id)

    async def aclose(self):
        await self._http.aclose()
