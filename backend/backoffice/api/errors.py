from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backoffice.auth.errors import AuthorizationUnavailable, RBACError


async def rbac_error_handler(request: Request, exc: RBACError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.to_detail()},
        headers=headers,
    )


async def authorization_unavailable_handler(request: Request, exc: AuthorizationUnavailable) -> JSONResponse:
    # Logged where it was raised; the client only learns that no decision was made.
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.to_detail()},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RBACError, rbac_error_handler)
    app.add_exception_handler(AuthorizationUnavailable, authorization_unavailable_handler)
