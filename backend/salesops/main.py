import asyncio
import contextlib
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from http import HTTPStatus

from salesops import models, schemas
from salesops.db import LOG_LEVEL, OVERDUE_SWEEP_SECONDS, database, engine
from salesops.errors import SalesError, BusinessRuleError
from salesops.logging_config import configure_logging, get_logger
from salesops.routers import clients, employees, invoices, orders, products, quotes
from salesops.sequences import ensure_sequences
from salesops.services.workflow import build_workflow

logger = get_logger("main")


async def _overdue_sweeper(wf, interval: int):
    while True:
        await asyncio.sleep(interval)
        try:
            await wf.invoices.sweep_overdue()
        except Exception:
            logger.exception("overdue sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(LOG_LEVEL)
    models.Base.metadata.create_all(bind=engine)
    await database.connect()
    await ensure_sequences()
    sweeper = None
    if OVERDUE_SWEEP_SECONDS > 0:
        sweeper = asyncio.create_task(_overdue_sweeper(app.state.workflow, OVERDUE_SWEEP_SECONDS))
    logger.info("sales service started")
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
        await database.disconnect()


app = FastAPI(title="salesops", lifespan=lifespan)
app.state.workflow = build_workflow()

app.include_router(clients.router)
app.include_router(employees.router)
app.include_router(products.router)
app.include_router(quotes.router)
app.include_router(orders.router)
app.include_router(invoices.router)


def _error(status: int, message: str, request: Request) -> JSONResponse:
    body = schemas.ErrorOut(
        status=status,
        error=HTTPStatus(status).phrase,
        message=message,
        path=request.url.path,
        timestamp=datetime.utcnow(),
    )
    return JSONResponse(status_code=status, content=body.model_dump(mode="json"))


@app.exception_handler(SalesError)
async def sales_error_handler(request: Request, exc: SalesError):
    if isinstance(exc, BusinessRuleError):
        logger.warning("rejected %s %s: %s", request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message, request)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{field}: {err.get('msg')}; ")
    return _error(400, "Validation failed: " + "".join(parts), request)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("unexpected error on %s %s", request.method, request.url.path)
    return _error(500, "An unexpected error occurred", request)


@app.get("/health")
async def health():
    return {"status": "ok"}
