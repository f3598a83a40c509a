"""
Tardis Bank API Application Factory
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import TardisConfig, get_config
from ..errors import (
    BankError, RecordMissingError, ValidationError, ConflictError,
    AuthenticationError, InvalidTokenError
)
from ..logging_config import setup_logging, get_logger
from ..schedules import ScheduleRunner
from .. import __version__
from .auth import BankSystem
from .home import router as home_router
from .accounts import router as accounts_router
from .transactions import router as transactions_router
from .schedules import router as schedules_router


logger = get_logger("tardis_bank.api")

# Most specific first; the first isinstance match wins
ERROR_STATUS = [
    (RecordMissingError, 500),
    (ValidationError, 400),
    (ConflictError, 409),
    (AuthenticationError, 401),
    (InvalidTokenError, 401),
]


def _status_for(exc: BankError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 400


async def bank_error_handler(request: Request, exc: BankError) -> JSONResponse:
    status_code = _status_for(exc)
    if status_code >= 500:
        # A record that must exist was missing; a storage fault, not a client error
        logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
        return JSONResponse(status_code=status_code, content={"detail": "Internal server error"})

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content={"detail": str(exc)}, headers=headers)


def create_app(system: Optional[BankSystem] = None, config: Optional[TardisConfig] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    config = config or (system.config if system else get_config())
    setup_logging(config.log_level, log_format=config.log_format)

    owns_system = system is None
    if system is None:
        system = BankSystem.from_config(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        runner = ScheduleRunner(system.schedule_evaluator, config.schedule_poll_seconds)
        runner.start()
        logger.info("Tardis Bank API started")
        try:
            yield
        finally:
            await runner.stop()
            if owns_system:
                system.close()
            logger.info("Tardis Bank API stopped")

    app = FastAPI(
        title="Tardis Bank API",
        description="Hypermedia banking ledger with running balances and recurring schedules",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.bank_system = system

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in config.cors_origins.split(",") if origin.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BankError, bank_error_handler)

    # Include routers
    app.include_router(home_router, tags=["Home"])
    app.include_router(accounts_router, prefix="/accounts", tags=["Accounts"])
    app.include_router(transactions_router, prefix="/accounts/{account_id}/transactions", tags=["Transactions"])
    app.include_router(schedules_router, prefix="/accounts/{account_id}/schedules", tags=["Schedules"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "tardis_bank_api",
            "version": __version__
        }

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    uvicorn.run(
        "tardis_bank.api:create_app",
        factory=True,
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level="info"
    )
