"""API key authentication for the public reporting API.

Accepted forms:
1. ``Authorization: Bearer <key>``
2. ``X-API-Key: <key>``

Any failure (missing, unknown, revoked, expired) produces the same 401 so
the endpoint cannot be used to probe key validity.
"""

from typing import Optional

from fastapi import Depends, Security
from fastapi.security import APIKeyHeader, HTTPBearer, HTTPAuthorizationCredentials

from app.dependencies import get_vault
from core.exceptions import UnauthorizedError
from services.credential_vault import CredentialVault, VerifiedKey

# Security schemes
api_key_bearer = HTTPBearer(auto_error=False, scheme_name="APIKeyBearer")
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def extract_api_key(
    bearer: Optional[HTTPAuthorizationCredentials],
    header_key: Optional[str],
) -> Optional[str]:
    """Pick the raw key from the request, Bearer first."""
    if bearer and bearer.credentials:
        return bearer.credentials.strip()
    if header_key:
        return header_key.strip()
    return None


async def resolve_api_key(
    bearer: Optional[HTTPAuthorizationCredentials] = Security(api_key_bearer),
    header_key: Optional[str] = Security(api_key_header),
    vault: CredentialVault = Depends(get_vault),
) -> VerifiedKey:
    """Authenticate the request by API key.

    Raises:
        UnauthorizedError: If no key was sent or the key does not verify
    """
    raw_key = extract_api_key(bearer, header_key)
    if not raw_key:
        raise UnauthorizedError("API key required. Pass: Authorization: Bearer YOUR_API_KEY")

    verified = await vault.verify(raw_key)
    if verified is None:
        raise UnauthorizedError("Invalid or expired API key.")
    return verified
