"""
Authentication resolvers:
- Mutation.register
- Mutation.login
- Mutation.authWithGoogle
- Mutation.refreshToken   (reads the refreshToken cookie)
- Mutation.logout         (reads the refreshToken cookie)
- Mutation.logoutAll      (bearer required)
- Query.me

The implementation:
- Uses argon2 for password hashing (via api.utils.password_hasher)
- Issues short-lived JWT access tokens and opaque refresh tokens (utils.security)
- Stores refresh tokens in the ledger (utils.ledger) and rotates them on every refresh
- Hands the refresh token to the browser only as an HttpOnly cookie
"""
from __future__ import annotations

import logging
from datetime import timedelta

from ariadne import MutationType, QueryType
from flask import after_this_request, current_app, request
from marshmallow import ValidationError as SchemaValidationError
from sqlalchemy.exc import IntegrityError

from api.errors import (
    AppError,
    InvalidCredentialsError,
    UserExistsError,
    validation_error_from_schema,
)
from api.utils.password_hasher import hash_password, check_password
from models import storage
from models.schemas.user import (
    GoogleAuthSchema,
    SocialProfileSchema,
    UserCreateSchema,
    UserLoginSchema,
)
from utils import ledger
from utils.decorators import login_required
from utils.google import verify_id_token
from utils.security import issue_access_token, issue_refresh_token

logger = logging.getLogger(__name__)

SOCIAL_ACCOUNT_MESSAGE = "This account uses Google Login. Please sign in with Google."
INVALID_REFRESH_MESSAGE = "Invalid or expired refresh token"

query = QueryType()
mutation = MutationType()

user_create_schema = UserCreateSchema()
user_login_schema = UserLoginSchema()
google_auth_schema = GoogleAuthSchema()
social_profile_schema = SocialProfileSchema()


def _load(schema, payload: dict) -> dict:
    try:
        return schema.load(payload)
    except SchemaValidationError as err:
        raise validation_error_from_schema(err)


def _default_name(email: str) -> str:
    return email.split("@", 1)[0]


def set_refresh_cookie(token: str) -> None:
    cfg = current_app.config

    @after_this_request
    def _set_cookie(response):
        response.set_cookie(
            cfg["REFRESH_COOKIE_NAME"],
            token,
            max_age=int(timedelta(days=cfg["REFRESH_TOKEN_TTL_DAYS"]).total_seconds()),
            httponly=True,
            secure=cfg["COOKIE_SECURE"],
            samesite="Lax",
            path="/",
        )
        return response


def clear_refresh_cookie() -> None:
    cfg = current_app.config

    @after_this_request
    def _clear_cookie(response):
        response.delete_cookie(
            cfg["REFRESH_COOKIE_NAME"],
            path="/",
            httponly=True,
            secure=cfg["COOKIE_SECURE"],
            samesite="Lax",
        )
        return response


def start_session(user, revoke_existing: bool = False) -> dict:
    """Issue an access/refresh pair for user, persist the refresh token and set the cookie."""
    if revoke_existing:
        ledger.delete_all_for_user(user.id)
    refresh_token = issue_refresh_token()
    ledger.create(user.id, refresh_token)
    set_refresh_cookie(refresh_token)
    return {"accessToken": issue_access_token(user.id), "user": user}


@query.field("me")
def resolve_me(_, info):
    return info.context.get("user")


@mutation.field("register")
def resolve_register(_, info, email, password, name=None):
    data = _load(user_create_schema, {"email": email, "password": password, "name": name})

    if storage.find_user_by_email(data["email"]):
        raise UserExistsError()

    try:
        user = storage.create_user(
            email=data["email"],
            password_hash=hash_password(data["password"]),
            name=data.get("name") or _default_name(data["email"]),
        )
    except IntegrityError:
        # lost a race with a concurrent registration of the same email
        raise UserExistsError()

    logger.info("Registered user %s", user.id)
    return start_session(user)


@mutation.field("login")
def resolve_login(_, info, email, password):
    data = _load(user_login_schema, {"email": email, "password": password})
    cfg = current_app.config

    user = storage.find_user_by_email(data["email"])
    if user is None:
        logger.info("Login failed: unknown email")
        raise InvalidCredentialsError()

    if not user.has_password:
        logger.info("Login failed: user %s has no password", user.id)
        if cfg["LOGIN_REVEALS_SOCIAL_ACCOUNT"]:
            raise InvalidCredentialsError(SOCIAL_ACCOUNT_MESSAGE)
        raise InvalidCredentialsError()

    if not check_password(user.password_hash, data["password"]):
        logger.info("Login failed: wrong password for user %s", user.id)
        raise InvalidCredentialsError()

    return start_session(user, revoke_existing=cfg["REVOKE_SESSIONS_ON_LOGIN"])


def _find_or_create_google_user(profile: dict):
    user = storage.find_user_by_email(profile["email"])
    if user is None:
        try:
            user = storage.create_user(
                email=profile["email"],
                name=profile.get("name") or _default_name(profile["email"]),
                avatar=profile.get("picture"),
                google_id=profile.get("sub"),
            )
            logger.info("Registered user %s through Google", user.id)
            return user
        except IntegrityError:
            user = storage.find_user_by_email(profile["email"])
            if user is None:
                raise

    if not user.google_id and profile.get("sub"):
        # first Google sign-in of an existing password account
        user.google_id = profile["sub"]
        if not user.avatar:
            user.avatar = profile.get("picture")
        user.save()
    return user


@mutation.field("authWithGoogle")
def resolve_auth_with_google(_, info, idToken):
    data = _load(google_auth_schema, {"idToken": idToken})
    cfg = current_app.config

    try:
        claims = verify_id_token(data["idToken"], cfg["GOOGLE_CLIENT_ID"])
        if not claims.get("email"):
            raise InvalidCredentialsError("Google authentication failed")
        profile = _load(social_profile_schema, claims)
        user = _find_or_create_google_user(profile)
        return start_session(user, revoke_existing=cfg["REVOKE_SESSIONS_ON_LOGIN"])
    except AppError:
        raise
    except Exception:
        # provider and store details stay in the log, never in the response
        logger.warning("Google sign-in failed", exc_info=True)
        raise InvalidCredentialsError("Invalid Google Token")


@mutation.field("refreshToken")
def resolve_refresh_token(_, info):
    token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
    if not token:
        raise InvalidCredentialsError("Refresh token not found")

    record = ledger.find_valid(token)
    user = storage.find_user_by_id(record.user_id) if record else None
    if user is None:
        clear_refresh_cookie()
        raise InvalidCredentialsError(INVALID_REFRESH_MESSAGE)

    new_token = ledger.rotate(token, user.id)
    if new_token is None:
        clear_refresh_cookie()
        raise InvalidCredentialsError(INVALID_REFRESH_MESSAGE)

    set_refresh_cookie(new_token)
    return {"accessToken": issue_access_token(user.id), "user": user}


@mutation.field("logout")
def resolve_logout(_, info):
    token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
    if token:
        ledger.delete(token)
    clear_refresh_cookie()
    return True


@mutation.field("logoutAll")
@login_required
def resolve_logout_all(_, info):
    ledger.delete_all_for_user(info.context["user"].id)
    clear_refresh_cookie()
    return True
