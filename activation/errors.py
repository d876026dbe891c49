# activation/errors.py
from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse


class ApiError(Exception):
    """Client-visible failure, rendered as {"ok": false, "error": code}."""

    def __init__(self, status_code: int, error: str):
        super().__init__(error)
        self.status_code = status_code
        self.error = error


class LoginRequired(Exception):
    """Raised for panel pages when no valid session is presented."""


class StoreWriteError(Exception):
    """Persisting the device mapping failed."""


LOGIN_PATH = "/admin/login"


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.error})


async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse(LOGIN_PATH, status_code=302)


async def store_write_error_handler(request: Request, exc: StoreWriteError):
    return JSONResponse(status_code=500, content={"ok": False, "error": "storage_error"})
