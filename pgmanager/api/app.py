"""FastAPI application wiring."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pgmanager import __version__
from pgmanager.api import complaints, payments, rooms, settlements
from pgmanager.services.errors import LedgerError, error_response

logger = logging.getLogger(__name__)


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Render business-rule failures as {"error": {"code", "message"}}."""
    logger.info("%s %s -> %d %s", request.method, request.url.path, exc.http_status, exc.code)
    return JSONResponse(status_code=exc.http_status, content=error_response(exc))


def create_app() -> FastAPI:
    """Build the API application with all routers registered."""
    app = FastAPI(
        title="PG Manager",
        description="Rent ledger, rooms and move-out settlements for paying-guest properties",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(LedgerError, ledger_error_handler)

    app.include_router(payments.router)
    app.include_router(rooms.router)
    app.include_router(settlements.router)
    app.include_router(complaints.router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
