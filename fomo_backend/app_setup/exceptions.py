"""
Gestionnaires d’exceptions.
- CheckoutError (taxonomie du checkout) -> {"error": {"code", "message", "reason"?}} avec son statut HTTP.
- Corps de requête invalide (Pydantic) -> 400 invalid_request, même enveloppe.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fomo_backend.errors import CheckoutError

logger = logging.getLogger(__name__)

def error_response(exc: CheckoutError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CheckoutError)
    async def checkout_error(request: Request, exc: CheckoutError):
        logger.info("checkout error path=%s code=%s", request.url.path, exc.code)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        body = {
            "code": "invalid_request",
            "message": first.get("msg") or "Requête invalide",
        }
        if field:
            body["reason"] = field
        return JSONResponse(status_code=400, content={"error": body})
