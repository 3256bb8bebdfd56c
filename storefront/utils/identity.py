# storefront/utils/identity.py
import logging
import time
from typing import List, Optional

import httpx
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from storefront.errors import ForbiddenError, InternalError, UnauthorizedError

logger = logging.getLogger(__name__)

# Token is optional at the scheme level; protected routes decide
bearer_scheme = HTTPBearer(auto_error=False)

JWKS_CACHE_SECONDS = 3600


# Identity resolved from a provider-issued token
class Identity(BaseModel):
    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None


class IdentityVerifier:
    """Verifies bearer tokens issued by the external identity provider.

    Tokens are checked either against a shared HS256 secret or against the
    provider's published JWKS document, which is fetched lazily and cached.
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        jwks_url: Optional[str] = None,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
        algorithms: Optional[List[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret = secret
        self.jwks_url = jwks_url
        self.issuer = issuer
        self.audience = audience
        self.algorithms = algorithms or ["RS256"]
        self._transport = transport
        self._jwks: Optional[dict] = None
        self._jwks_fetched_at = 0.0

    @classmethod
    def from_settings(cls, settings) -> "IdentityVerifier":
        return cls(
            secret=settings.IDENTITY_JWT_SECRET,
            jwks_url=settings.IDENTITY_JWKS_URL,
            issuer=settings.IDENTITY_ISSUER,
            audience=settings.IDENTITY_AUDIENCE,
            algorithms=settings.IDENTITY_ALGORITHMS,
        )

    async def get_jwks(self) -> dict:
        # Reuse the cached key set until it expires
        if self._jwks is not None and time.monotonic() - self._jwks_fetched_at < JWKS_CACHE_SECONDS:
            return self._jwks
        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.get(self.jwks_url, timeout=10.0)
                response.raise_for_status()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                logger.error(f"Identity provider JWKS fetch error: {e}")
                raise InternalError("Identity provider unavailable")
        self._jwks = response.json()
        self._jwks_fetched_at = time.monotonic()
        return self._jwks

    async def _signing_key(self):
        if self.secret:
            return self.secret
        if self.jwks_url:
            return await self.get_jwks()
        raise InternalError("Identity provider is not configured")

    async def verify(self, token: str) -> Identity:
        key = await self._signing_key()
        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_aud": self.audience is not None},
            )
        except JWTError as e:
            logger.info("Rejected identity token: %s", e)
            raise UnauthorizedError()

        user_id = payload.get("sub")
        # Ensure the subject is present in the token payload
        if not user_id:
            raise UnauthorizedError()

        metadata = payload.get("metadata") or {}
        return Identity(
            user_id=user_id,
            email=payload.get("email"),
            role=payload.get("role") or metadata.get("role"),
        )


def get_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.identity


# Resolve the caller's identity, or None for anonymous requests
async def get_optional_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Identity]:
    if credentials is None or not credentials.credentials:
        return None
    try:
        return await get_verifier(request).verify(credentials.credentials)
    except UnauthorizedError:
        return None


async def get_current_identity(identity: Optional[Identity] = Depends(get_optional_identity)) -> Identity:
    if identity is None:
        raise UnauthorizedError()
    return identity


def is_authenticated(identity: Optional[Identity]) -> bool:
    return identity is not None and bool(identity.user_id)


def owns_resource(identity: Optional[Identity], resource_user_id: Optional[str]) -> bool:
    return is_authenticated(identity) and resource_user_id is not None and identity.user_id == resource_user_id


# Dependency factory for role-based access control
def role_required(*allowed_roles):
    async def _checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if allowed_roles and (identity.role or "").lower() not in allowed_roles:
            raise ForbiddenError()
        return identity
    return _checker
