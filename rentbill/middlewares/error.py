import logging
import traceback
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from rentbill.config import config
from rentbill.errors import DomainError


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        error_id = str(uuid.uuid4())
        body = {"error": exc.code, "message": exc.message}

        if config.is_development:
            body["errorId"] = error_id
            body["details"] = {"name": type(exc).__name__, **exc.details}

        return JSONResponse(
            content=jsonable_encoder(body),
            status_code=exc.status_code,
            headers={"X-Error-ID": error_id}
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        error_id = str(uuid.uuid4())
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return JSONResponse(
            content={"error": "VALIDATION_ERROR", "message": "Invalid request data", "details": details},
            status_code=400,
            headers={"X-Error-ID": error_id}
        )

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        error_id = str(uuid.uuid4())
        logging.exception(f"Unhandled exception [{error_id}] on {request.method} {request.url.path}: {exc}")

        body = {
            "error": "INTERNAL_SERVER_ERROR",
            "message": "An unexpected error occurred. Please try again later."
        }
        if config.is_development:
            body["errorId"] = error_id
            body["details"] = {
                "name": type(exc).__name__,
                "message": str(exc),
                "stack": traceback.format_exc()
            }

        return JSONResponse(content=body, status_code=500, headers={"X-Error-ID": error_id})
