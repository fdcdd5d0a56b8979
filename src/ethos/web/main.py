"""
FastAPI application for the tournament core.

Run with:
    uvicorn ethos.web.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ethos import __version__
from ethos.config import settings
from ethos.errors import EthosError
from ethos.log_setup import configure_logging
from ethos.web.routers import adjustments, byes, judges, matches, scores, standings

logger = logging.getLogger(__name__)

configure_logging()

app = FastAPI(title="Ethos Tournament Core", version=__version__)

for module in (matches, judges, scores, byes, adjustments, standings):
    app.include_router(module.router)


@app.exception_handler(EthosError)
async def ethos_error_handler(request: Request, exc: EthosError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": "Invalid request",
            "error": "VALIDATION_FAILED",
            "details": {"errors": errors},
        },
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error", "error": "INTERNAL_ERROR"},
    )


@app.get("/health")
def health():
    return {"success": True, "data": {"status": "ok", "version": __version__}, "message": ""}


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "ethos.web.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )


if __name__ == "__main__":
    run()
