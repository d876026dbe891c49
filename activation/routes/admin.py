# activation/routes/admin.py
import logging
import os

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from activation.auth import (
    SESSION_COOKIE,
    current_session,
    get_sessions,
    get_settings,
    get_store,
    require_admin_api,
    require_admin_page,
)
from activation.errors import ApiError
from activation.models import record_from_payload
from activation.routes.devices import json_body
from activation.sessions import SessionManager
from activation.status import normalize_code
from activation.store import RecordStore
from activation.utils.crypto import secret_matches

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

TEMPLATES = Jinja2Templates(directory=os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates"))


def set_session_cookie(response, token: str):
    response.set_cookie(
        SESSION_COOKIE,
        token,
        path="/",
        httponly=True,
        samesite="lax",
        secure=True,
    )


def clear_session_cookie(response):
    response.delete_cookie(SESSION_COOKIE, path="/", httponly=True, samesite="lax", secure=True)


async def read_credentials(request: Request) -> tuple[bool, str | None, str | None]:
    """Returns (is_json, username, password) from a JSON or form-encoded body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        body = await json_body(request)
        return True, body.get("username"), body.get("password")
    form = await request.form()
    return False, form.get("username"), form.get("password")


def render_login(request: Request, error: str | None = None, status_code: int = 200):
    return TEMPLATES.TemplateResponse(request, "login.html", {"error": error}, status_code=status_code)


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request):
    if current_session(request) is not None:
        return RedirectResponse("/admin", status_code=302)
    return render_login(request)


@router.post("/login")
async def login(request: Request):
    settings = get_settings(request)
    is_json, username, password = await read_credentials(request)

    ok = (
        isinstance(username, str)
        and isinstance(password, str)
        and secret_matches(username, settings.admin_username)
        and secret_matches(password, settings.admin_password)
    )
    if not ok:
        logger.warning("Failed admin login attempt")
        if is_json:
            return JSONResponse(status_code=401, content={"ok": False, "error": "invalid_credentials"})
        return render_login(request, "Invalid username or password", status_code=401)

    token = get_sessions(request).create(request.headers.get("user-agent"))
    logger.info("Admin logged in")
    if is_json:
        response = JSONResponse(content={"ok": True, "redirect": "/admin"})
    else:
        response = RedirectResponse("/admin", status_code=302)
    set_session_cookie(response, token)
    return response


@router.post("/logout")
def logout(request: Request, sessions: SessionManager = Depends(get_sessions)):
    sessions.destroy(request.cookies.get(SESSION_COOKIE))
    logger.info("Admin logged out")
    response = JSONResponse(content={"ok": True})
    clear_session_cookie(response)
    return response


@router.get("", response_class=HTMLResponse, dependencies=[Depends(require_admin_page)])
def admin_page(request: Request):
    return TEMPLATES.TemplateResponse(request, "admin.html", {})


@router.get("/api/list", dependencies=[Depends(require_admin_api)])
def list_devices(store: RecordStore = Depends(get_store)):
    # store.list() is already ordered by code
    items = [{"device": code, **rec.model_dump()} for code, rec in store.list()]
    return {"ok": True, "items": items}


@router.post("/api/save", dependencies=[Depends(require_admin_api)])
def save_device(payload: dict = Depends(json_body), store: RecordStore = Depends(get_store)):
    code = normalize_code(payload.get("device"))
    if not code:
        raise ApiError(400, "missing_device")
    rec = record_from_payload(payload)
    store.put(code, rec)
    return {"ok": True, "device": code, "data": rec.model_dump()}


@router.post("/api/delete", dependencies=[Depends(require_admin_api)])
def delete_device(payload: dict = Depends(json_body), store: RecordStore = Depends(get_store)):
    code = normalize_code(payload.get("device"))
    if not code:
        raise ApiError(400, "missing_device")
    store.delete(code)
    return {"ok": True}


# Graceful redirects for trailing slashes
@router.get("/", include_in_schema=False)
def admin_slash():
    return RedirectResponse("/admin", status_code=302)


@router.get("/login/", include_in_schema=False)
def admin_login_slash():
    return RedirectResponse("/admin/login", status_code=302)
