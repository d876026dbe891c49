# activation/auth.py
"""Authenticators used as route dependencies.

BearerKeyAuthenticator guards the script-facing /update endpoint.
SessionAuthenticator guards the admin panel, either redirecting (pages)
or answering 401 (AJAX endpoints).
"""
from typing import Optional

from fastapi import Request

from activation.errors import ApiError, LoginRequired
from activation.sessions import AdminSession
from activation.utils.crypto import secret_matches

SESSION_COOKIE = "admin_session"


def get_store(request: Request):
    return request.app.state.store


def get_sessions(request: Request):
    return request.app.state.sessions


def get_settings(request: Request):
    return request.app.state.settings


def bearer_value(authorization: Optional[str]) -> Optional[str]:
    """Accept both "Bearer <key>" and a raw key in the Authorization header."""
    if authorization is None:
        return None
    value = authorization.strip()
    scheme, _, rest = value.partition(" ")
    if scheme.lower() == "bearer" and rest:
        return rest.strip()
    return value


class Authenticator:
    def __call__(self, request: Request):
        raise NotImplementedError


class BearerKeyAuthenticator(Authenticator):
    def __call__(self, request: Request) -> None:
        supplied = bearer_value(request.headers.get("authorization"))
        if not secret_matches(supplied, get_settings(request).admin_key):
            raise ApiError(403, "unauthorized")


class SessionAuthenticator(Authenticator):
    def __init__(self, api: bool):
        self.api = api

    def __call__(self, request: Request) -> AdminSession:
        session = current_session(request)
        if session is None:
            if self.api:
                raise ApiError(401, "not_authenticated")
            raise LoginRequired()
        return session


def current_session(request: Request) -> Optional[AdminSession]:
    token = request.cookies.get(SESSION_COOKIE)
    return get_sessions(request).validate(token, request.headers.get("user-agent"))


require_admin_key = BearerKeyAuthenticator()
require_admin_page = SessionAuthenticator(api=False)
require_admin_api = SessionAuthenticator(api=True)
