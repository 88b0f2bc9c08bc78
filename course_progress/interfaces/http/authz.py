from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from ...config import settings
from ...domain.errors import Forbidden, Unauthenticated

# auto_error=False: отсутствие токена обрабатываем сами
bearer = HTTPBearer(auto_error=False)

def _decode(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise Unauthenticated("invalid token")

def get_claims(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> dict:
    if creds is None:
        raise Unauthenticated("login required")
    return _decode(creds.credentials)

def get_user_id(claims: dict = Depends(get_claims)) -> str:
    sub = claims.get("sub")
    if not sub:
        raise Unauthenticated("invalid token")
    return str(sub)

def get_optional_user_id(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> str | None:
    """Для публичных маршрутов: без токена - аноним, с битым токеном - 401."""
    if creds is None:
        return None
    sub = _decode(creds.credentials).get("sub")
    return str(sub) if sub else None

def require_admin(claims: dict = Depends(get_claims)) -> dict:
    role = claims.get("role", "student")
    if role != "admin":
        raise Forbidden("admin required")
    return claims
