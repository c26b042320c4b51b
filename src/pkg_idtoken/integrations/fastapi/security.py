from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

# Expose this so apps can plug it into dependencies if they want OpenAPI security
bearer_scheme = HTTPBearer(auto_error=False)

DEFAULT_COOKIE_NAME = "id_token"


def extract_token_from_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = None,
    cookie_name: Optional[str] = DEFAULT_COOKIE_NAME,
) -> str:
    """
    Extract an ID token from either:

      1. HTTP Bearer auth header (preferred)
      2. A cookie (e.g. 'id_token'), unless cookie_name is None

    Raises HTTPException(401) if no token is found.
    """
    if credentials is not None:
        token = (credentials.credentials or "").strip()
        if token:
            return token

    # raw header, for routes that don't declare bearer_scheme
    auth_header = request.headers.get("Authorization") or ""
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()

    if cookie_name:
        cookie_token = request.cookies.get(cookie_name)
        if cookie_token:
            return cookie_token

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
