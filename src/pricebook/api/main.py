import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse

from pricebook.api.prices import router as prices_router
from pricebook.config import settings
from pricebook.container import Container
from pricebook.exceptions import ConflictError, ItemNotFoundError, LedgerValidationError, TransientStoreError

logger = logging.getLogger("pricebook.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = Container()
    app.state.container = container
    yield
    engine = container.engine()
    await engine.dispose()


app = FastAPI(title="Pricebook", version="0.1.0", lifespan=lifespan)


def _error(status_code: int, message: str, details=None) -> JSONResponse:
    content = {"error": {"message": message, "details": jsonable_encoder(details)}}
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error(
        400, "Invalid request", [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
    )


@app.exception_handler(LedgerValidationError)
async def ledger_validation_handler(request: Request, exc: LedgerValidationError):
    return _error(400, exc.message, exc.details)


@app.exception_handler(ItemNotFoundError)
async def item_not_found_handler(request: Request, exc: ItemNotFoundError):
    return _error(404, str(exc))


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return _error(409, str(exc))


@app.exception_handler(TransientStoreError)
async def transient_store_handler(request: Request, exc: TransientStoreError):
    logger.warning("Store unavailable on %s %s: %s", request.method, request.url.path, exc)
    return _error(503, "Storage temporarily unavailable")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return _error(500, "Internal Server Error")


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(prices_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
