import logging
import os
import uuid
from fastapi import Request, Response
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone

from healthcheck.models.user import AuthContext
from healthcheck.sessions import is_session_revoked

logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("SESSION_SECRET", "health-check-secret-key-change-in-production")
ALGORITHM = "HS256"
SESSION_COOKIE_NAME = "session"
SESSION_MAX_AGE_HOURS = int(os.getenv("SESSION_MAX_AGE_HOURS", "24"))
SESSION_MAX_AGE_SECONDS = SESSION_MAX_AGE_HOURS * 60 * 60
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"


class LoginRequiredError(Exception):
    """Raised by protected handlers when the request carries no valid session."""
    pass


class InvalidSessionError(Exception):
    pass


def create_session_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a signed session token. Adds a session id (jti) if missing."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(seconds=SESSION_MAX_AGE_SECONDS)

    to_encode.setdefault("jti", uuid.uuid4().hex)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_session_token(token: str) -> AuthContext:
    """Verify and decode a session token into an AuthContext."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        raise InvalidSessionError("Invalid session token") from e

    user_id: str | None = payload.get("sub")
    if user_id is None:
        raise InvalidSessionError("Invalid session payload")

    return AuthContext(
        user_id=user_id,
        user_name=payload.get("name", ""),
        session_id=payload.get("jti"),
    )


def start_session(response: Response, auth: AuthContext) -> None:
    """Attach a fresh session cookie for the given identity."""
    data = {"sub": auth.user_id, "name": auth.user_name}
    if auth.session_id:
        data["jti"] = auth.session_id
    response.set_cookie(
        SESSION_COOKIE_NAME,
        create_session_token(data),
        max_age=SESSION_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
        secure=SESSION_COOKIE_SECURE,
    )


def end_session(response: Response) -> None:
    response.delete_cookie(
        SESSION_COOKIE_NAME,
        httponly=True,
        samesite="lax",
        secure=SESSION_COOKIE_SECURE,
    )


async def read_session(request: Request) -> AuthContext | None:
    """Build the AuthContext for a request, or None if it has no live session."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None

    try:
        auth = verify_session_token(token)
    except InvalidSessionError:
        return None

    if await is_session_revoked(auth.session_id):
        return None
    return auth


def _sets_session_cookie(response: Response) -> bool:
    prefix = f"{SESSION_COOKIE_NAME}="
    return any(h.startswith(prefix) for h in response.headers.getlist("set-cookie"))


async def session_middleware(request: Request, call_next):
    """
    Resolve the session once per request and store it in request.state.

    Authenticated responses get the cookie re-issued so the session expiry slides.
    Handlers that set or delete the cookie themselves (login, logout) are left alone.
    """
    auth = await read_session(request)
    request.state.auth = auth
    if auth:
        request.state.user_id = auth.user_id

    response = await call_next(request)

    if auth and not _sets_session_cookie(response):
        start_session(response, auth)
    return response


async def get_auth_context(request: Request) -> AuthContext:
    """Dependency for protected routes. Raises LoginRequiredError without a session."""
    auth: AuthContext | None = getattr(request.state, "auth", None)
    if auth is None:
        raise LoginRequiredError()
    return auth


async def get_optional_auth_context(request: Request) -> AuthContext | None:
    return getattr(request.state, "auth", None)
