import time

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient
from jose import jwk, jwt

from resume_api.database import Database, get_db, init_db
from resume_api.dependencies import get_identity_verifier, get_provider_admin
from resume_api.errors import ProviderError
from resume_api.main import app
from resume_api.services.identity_service import IdentityVerifier

PROJECT_ID = "resume-builder-test"
ISSUER = f"https://securetoken.google.com/{PROJECT_ID}"
JWKS_URL = "https://keys.example.test/jwks.json"
KEY_ID = "test-key"


def _generate_rsa_pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def _public_jwk(private_pem: str, kid: str) -> dict:
    public_key = jwk.construct(private_pem, "RS256").public_key()
    data = public_key.to_dict()
    data.update({"kid": kid, "use": "sig"})
    return data


@pytest.fixture(scope="session")
def signing_key():
    return _generate_rsa_pem()


@pytest.fixture(scope="session")
def foreign_signing_key():
    """A key the provider never published."""
    return _generate_rsa_pem()


@pytest.fixture
def jwks_requests():
    return []


@pytest.fixture(scope="session")
def jwks(signing_key):
    return {"keys": [_public_jwk(signing_key, KEY_ID)]}


@pytest.fixture
def make_verifier():
    """Build a verifier whose key fetches are answered by ``handler``."""

    def _make(handler, **kwargs):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return IdentityVerifier(
            issuer=ISSUER,
            audience=PROJECT_ID,
            jwks_url=JWKS_URL,
            http_client=http_client,
            **kwargs,
        )

    return _make


@pytest.fixture
def verifier(make_verifier, jwks, jwks_requests):
    def serve_jwks(request: httpx.Request) -> httpx.Response:
        jwks_requests.append(request)
        return httpx.Response(200, json=jwks)

    return make_verifier(serve_jwks)


@pytest.fixture
def make_token(signing_key):
    def _make(
        sub="user-a",
        email="a@example.com",
        email_verified=True,
        expires_in=3600,
        issuer=ISSUER,
        audience=PROJECT_ID,
        key=None,
        **extra,
    ):
        now = int(time.time())
        claims = {
            "iss": issuer,
            "aud": audience,
            "iat": now - 10,
            "exp": now + expires_in,
            "email_verified": email_verified,
            **extra,
        }
        if sub is not None:
            claims["sub"] = sub
        if email is not None:
            claims["email"] = email
        return jwt.encode(claims, key or signing_key, algorithm="RS256", headers={"kid": KEY_ID})

    return _make


class FakeProviderAdmin:
    def __init__(self):
        self.deleted: list[str] = []
        self.fail = False

    async def delete_user(self, subject_id: str):
        if self.fail:
            raise ProviderError("provider said no")
        self.deleted.append(subject_id)


@pytest.fixture
def provider_admin():
    return FakeProviderAdmin()


@pytest.fixture
def tmp_data_dir(tmp_path):
    data_dir = tmp_path / "ResumeBuilder"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def database(tmp_data_dir):
    db_path = tmp_data_dir / "db.sqlite"
    init_db(db_path)
    database = Database(db_path, pool_size=5, pool_timeout=1.0)
    yield database
    database.dispose()


@pytest.fixture
def db_session(database):
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(database, verifier, provider_admin):
    def override_get_db():
        db = database.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_verifier] = lambda: verifier
    app.dependency_overrides[get_provider_admin] = lambda: provider_admin
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(make_token):
    def _headers(sub="user-a", **claims):
        claims.setdefault("email", f"{sub}@example.com")
        return {"Authorization": f"Bearer {make_token(sub=sub, **claims)}"}

    return _headers
