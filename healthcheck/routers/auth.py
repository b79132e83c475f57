"""
Login, registration and logout pages.
Successful login stores a signed session cookie; logout revokes it.
"""
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from healthcheck.dependencies import (
    SESSION_MAX_AGE_SECONDS,
    end_session,
    get_optional_auth_context,
    start_session,
)
from healthcheck.models.user import AuthContext, LoginForm, RegisterForm
from healthcheck.services.user_service import (
    EmailTakenError,
    InvalidCredentialsError,
    StorageFailureError,
    UserService,
    get_user_service,
)
from healthcheck.sessions import revoke_session
from healthcheck.templating import error_messages, render

logger = logging.getLogger(__name__)

auth_router = APIRouter(tags=["auth"])

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
STORAGE_FAILURE_MESSAGE = "Database error, please try again later"


@auth_router.get("/login")
async def login_page(request: Request):
    return render(request, "login.html")


@auth_router.post("/login")
async def login(
    request: Request,
    user_service: UserService = Depends(get_user_service)
):
    """
    Check email and password, then start a session and go to /index.

    Unknown email and wrong password produce the same message.
    """
    form_data = dict(await request.form())
    email = form_data.get("email", "")

    try:
        credentials = LoginForm.model_validate(form_data)
    except ValidationError as e:
        return render(
            request, "login.html",
            {"errors": error_messages(e), "email": email},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        user = await user_service.verify_user_credentials(
            credentials.email,
            credentials.password
        )
    except InvalidCredentialsError:
        return render(
            request, "login.html",
            {"errors": [{"msg": INVALID_CREDENTIALS_MESSAGE}], "email": email},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    except StorageFailureError:
        return render(
            request, "login.html",
            {"errors": [{"msg": STORAGE_FAILURE_MESSAGE}], "email": email},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    logger.info(f"User logged in: {user['id']}")
    response = RedirectResponse("/index", status_code=status.HTTP_303_SEE_OTHER)
    start_session(response, AuthContext(user_id=user["id"], user_name=user.get("name", "")))
    return response


@auth_router.get("/register")
async def register_page(request: Request):
    return render(request, "register.html")


@auth_router.post("/register")
async def register(
    request: Request,
    user_service: UserService = Depends(get_user_service)
):
    """
    Register a new user and redirect to /login.

    Passwords are hashed using bcrypt before storage.
    """
    form_data = dict(await request.form())
    form_values = {"name": form_data.get("name", ""), "email": form_data.get("email", "")}

    try:
        user_data = RegisterForm.model_validate(form_data)
    except ValidationError as e:
        return render(
            request, "register.html",
            {"errors": error_messages(e), **form_values},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        await user_service.register(user_data)
    except EmailTakenError:
        return render(
            request, "register.html",
            {"errors": [{"msg": "Email is already registered"}], **form_values},
            status_code=status.HTTP_409_CONFLICT,
        )
    except StorageFailureError:
        return render(
            request, "register.html",
            {"errors": [{"msg": "Failed to register account, please try again later"}], **form_values},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)


@auth_router.get("/logout")
async def logout(auth: AuthContext | None = Depends(get_optional_auth_context)):
    """End the session. A failed revocation is logged but never blocks the redirect."""
    if auth:
        if not await revoke_session(auth.session_id, SESSION_MAX_AGE_SECONDS):
            logger.warning(f"Logout for user {auth.user_id} could not revoke session server-side")
        logger.info(f"User logged out: {auth.user_id}")

    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    end_session(response)
    return response
