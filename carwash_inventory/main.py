import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from carwash_inventory.api import auth, inventory_logs, products, purchases, reports, requisitions, service_products
from carwash_inventory.config import settings
from carwash_inventory.database import init_db
from carwash_inventory.exceptions import LedgerError

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Products, requisitions, purchases and the inventory ledger",
    version="1.0.0",
    lifespan=lifespan,
)


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message}, headers=headers)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0])
        problems.append(f"{location}: {err['msg']}")
    return _error(400, "; ".join(problems))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return JSON for unhandled exceptions so the client can parse the error."""
    logger.error("Unhandled error: %s\n%s", exc, traceback.format_exc())
    return _error(500, str(exc))


app.include_router(auth.router, prefix="/api")
app.include_router(inventory_logs.router, prefix="/api")
app.include_router(requisitions.router, prefix="/api")
app.include_router(purchases.router, prefix="/api")
app.include_router(products.router, prefix="/api")
app.include_router(service_products.router, prefix="/api")
app.include_router(reports.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok"}
