"""Exception handlers that translate auth errors to HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from backoffice_api.settings import get_settings

from ..auth.errors import AuthenticationError, PermissionDeniedError
from ..auth.sessions import end_session, remember_intended


def _wants_html(request: Request) -> bool:
    return "text/html" in (request.headers.get("accept") or "").lower()


def _handle_authentication_error(request: Request, exc: AuthenticationError) -> Response:
    """Bounce browser navigations to the login page; everything else gets 401."""

    settings = get_settings()
    if request.method.upper() == "GET" and _wants_html(request):
        response: Response = RedirectResponse(
            settings.login_path,
            status_code=status.HTTP_302_FOUND,
        )
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        remember_intended(response, settings, target)
    else:
        response = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={
                "detail": {
                    "error": "unauthenticated",
                    "message": str(exc) or "Authentication required.",
                }
            },
        )
    if request.cookies.get(settings.session_cookie_name):
        end_session(response, settings)
    return response


def _handle_permission_error(_request: Request, exc: PermissionDeniedError) -> JSONResponse:
    """Translate guard denials into HTTP 403 responses."""

    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": {"error": "forbidden", "message": exc.message}},
    )


def register_auth_exception_handlers(app: FastAPI) -> None:
    """Attach auth/RBAC handlers to the FastAPI app."""

    app.add_exception_handler(AuthenticationError, _handle_authentication_error)
    app.add_exception_handler(PermissionDeniedError, _handle_permission_error)


__all__ = ["register_auth_exception_handlers"]
