"""FastAPI dependencies that resolve the caller's identity from a bearer token."""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from stayhub.auth.jwt import decode_token

# Strict bearer: rejects requests without a token before the handler runs
_bearer_scheme = HTTPBearer()


@dataclass(frozen=True)
class Identity:
    """The authenticated caller as reported by the identity provider."""

    user_id: str
    email: str | None = None


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> Identity:
    """Validate the Bearer token and return the caller's identity.

    Only the token signature, expiry, and type are checked; user accounts
    live with the identity provider.

    Raises:
        HTTPException 401: If the token is invalid, expired, or of the wrong type.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise credentials_exception from None

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    sub: str | None = payload.get("sub")
    if not sub:
        raise credentials_exception

    return Identity(user_id=str(sub), email=payload.get("email"))
