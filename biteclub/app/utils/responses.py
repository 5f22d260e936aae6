"""Response envelopes shared by every route.

Success: ``{"ok": true, "data": ...}``. Failure:
``{"ok": false, "request_id": ..., "error": {"code", "message", "hint"?,
"details"?}}``.
"""

from typing import Any, Dict

from fastapi.responses import JSONResponse

from ..domain.errors import BiteClubError


def ok(data: Any) -> Dict[str, Any]:
    return {"ok": True, "data": data}


def err(
    code: int | str,
    message: str,
    details: Dict[str, Any] | None = None,
    hint: str | None = None,
) -> Dict[str, Any]:
    from ..middlewares.request_id import request_id_ctx

    optional = {"hint": hint, "details": details}
    error = {"code": code, "message": message}
    error.update({k: v for k, v in optional.items() if v})
    return {"ok": False, "request_id": request_id_ctx.get(None), "error": error}


def domain_error(exc: BiteClubError) -> JSONResponse:
    """Render ``exc`` with the HTTP status its class maps to."""
    body = err(exc.code, exc.message, exc.details, exc.hint)
    return JSONResponse(body, status_code=exc.status_code)
