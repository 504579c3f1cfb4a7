"""Session token verification.

Tokens are issued by the hosted identity provider; the API only
verifies them.  Claims used:
  - sub:  user ID
  - exp:  expiry timestamp
"""

from jose import JWTError, jwt

from axori.config import settings


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Returns empty dict on failure."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return {}
