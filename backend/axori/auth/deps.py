"""FastAPI dependency resolving the signed-in user from the bearer token."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from axori.auth.jwt import decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


async def get_current_user_id(token: str | None = Depends(oauth2_scheme)) -> str:
    """Return the `sub` claim of a valid session token, else 401."""
    payload = decode_token(token) if token else {}
    user_id: str | None = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
