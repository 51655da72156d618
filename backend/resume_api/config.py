from pathlib import Path
from pydantic import SecretStr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / "ResumeBuilder"
    api_prefix: str = "/api"
    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Identity provider. Issuer and audience default to the Firebase project.
    firebase_project_id: str = ""
    token_issuer: str | None = None
    token_audience: str | None = None
    jwks_url: str = (
        "https://www.googleapis.com/service_accounts/v1/jwk/"
        "securetoken@system.gserviceaccount.com"
    )
    jwks_cache_seconds: int = 3600

    # Bounded pool; exhaustion fails after the timeout instead of queueing.
    db_pool_size: int = 10
    db_pool_timeout_seconds: float = 2.0

    admin_subject_ids: list[str] = []
    provider_admin_url: str = "https://identitytoolkit.googleapis.com/v1"
    provider_admin_token: SecretStr | None = None
    cascade_user_documents: bool = False

    @property
    def db_path(self) -> Path:
        return self.data_dir / "db.sqlite"

    @property
    def effective_issuer(self) -> str:
        if self.token_issuer:
            return self.token_issuer
        return f"https://securetoken.google.com/{self.firebase_project_id}"

    @property
    def effective_audience(self) -> str:
        return self.token_audience or self.firebase_project_id

    model_config = {"env_prefix": "RESUME_API_"}


settings = Settings()
