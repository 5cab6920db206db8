# SchoolGate - Auth (JWT -> Actor for the decision engine)
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from config import get_settings
from rbac import Actor, PermissionQueryFacade, RequestContext

bearer = HTTPBearer(auto_error=False)

ALGORITHM = "HS256"
ACCESS_EXPIRE_MINUTES = 60


def get_secret():
    return get_settings().secret_key


def create_access_token(data: dict, expires_minutes: int = ACCESS_EXPIRE_MINUTES) -> str:
    """Issue a token; claims carry sub, role and an optional affiliation."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, get_secret(), algorithm=ALGORITHM)


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, get_secret(), algorithms=[ALGORITHM])
    except JWTError:
        return None


async def get_current_actor(credentials: HTTPAuthorizationCredentials | None = Depends(bearer)) -> Actor | None:
    if not credentials:
        return None
    payload = decode_token(credentials.credentials)
    if not payload or "sub" not in payload or "role" not in payload:
        return None
    try:
        return Actor(user_id=payload["sub"], role=payload["role"], affiliation=payload.get("affiliation"))
    except ValidationError:
        return None


async def require_actor(request: Request, actor: Actor | None = Depends(get_current_actor)) -> Actor:
    """Set request.state.actor and return it; 401 if not authenticated."""
    if not actor:
        raise HTTPException(status_code=401, detail="Not authenticated")
    request.state.actor = actor
    return actor


async def get_facade(request: Request, actor: Actor = Depends(require_actor)) -> PermissionQueryFacade:
    """Facade bound to the caller; ip and user agent feed the audit trail."""
    context = RequestContext(
        user_id=actor.user_id,
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return PermissionQueryFacade(request.app.state.engine, actor=actor, request_context=context)
