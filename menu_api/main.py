import json
import re
import uuid
from contextlib import asynccontextmanager
from typing import Any

import sentry_sdk
import structlog
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from menu_api.core.config import settings
from menu_api.core.errors import MenuItemNotFoundError, MenuValidationError
from menu_api.core.logging import configure_logging, request_id_ctx
from menu_api.core.sentry import init_sentry
from menu_api.menu.base import MenuItem, MenuItemPayload, MenuRepository
from menu_api.menu.store import MenuStore
from menu_api.menu.validation import invalid_json_error, validate_menu_item

configure_logging(settings.log_level)
init_sentry()
logger = structlog.get_logger(__name__)

MENU_ITEM_NOT_FOUND = "Menu item not found"
ENDPOINT_NOT_FOUND = "Endpoint not found"
ITEM_ID_RE = re.compile(r"-?[0-9]+")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("service_started", menu_items=len(app.state.menu_store))
    try:
        yield
    finally:
        logger.info("service_stopped")


app = FastAPI(title=settings.app_name, lifespan=lifespan)
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
app.state.limiter = limiter


def build_menu_store() -> MenuStore:
    return MenuStore.seeded() if settings.seed_menu else MenuStore()


app.state.menu_store = build_menu_store()


def get_menu_store(request: Request) -> MenuRepository:
    return request.app.state.menu_store


def parse_item_id(raw: str) -> int:
    if not ITEM_ID_RE.fullmatch(raw):
        raise MenuItemNotFoundError(raw)
    try:
        return int(raw)
    except ValueError:
        # past the interpreter's int conversion digit limit
        raise MenuItemNotFoundError(raw) from None


async def read_menu_item_payload(request: Request) -> MenuItemPayload:
    """Parse and validate a write body.

    Called from inside the rate-limited endpoints so rejected bodies still
    count against the write limit.
    """
    body = await request.body()
    raw: Any = None
    if body:
        try:
            raw = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise invalid_json_error() from None
    if settings.log_request_bodies:
        logger.info("request_body", method=request.method, path=request.url.path, body=raw)
    return validate_menu_item(raw)


@app.middleware("http")
async def add_request_context(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request_id_token = request_id_ctx.set(request_id)

    try:
        logger.info("request_received", method=request.method, path=request.url.path)
        try:
            response = await call_next(request)
        except Exception as exc:
            response = await unhandled_exception_handler(request, exc)
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )
    finally:
        request_id_ctx.reset(request_id_token)

    response.headers["x-request-id"] = request_id
    return response


@app.exception_handler(MenuValidationError)
async def menu_validation_handler(request: Request, exc: MenuValidationError):
    logger.warning(
        "request_validation_failed",
        path=request.url.path,
        fields=[violation.path for violation in exc.violations],
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "status": status.HTTP_400_BAD_REQUEST,
            "errors": [violation.model_dump(mode="json") for violation in exc.violations],
        },
    )


@app.exception_handler(MenuItemNotFoundError)
async def menu_item_not_found_handler(request: Request, exc: MenuItemNotFoundError):
    logger.info("menu_item_not_found", path=request.url.path, item_id=str(exc.item_id))
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"status": status.HTTP_404_NOT_FOUND, "message": MENU_ITEM_NOT_FOUND},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Unknown methods on known paths are reported like unknown paths
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        logger.info("endpoint_not_found", method=request.method, path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"status": status.HTTP_404_NOT_FOUND, "message": ENDPOINT_NOT_FOUND},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": exc.status_code, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("rate_limit_exceeded", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"status": status.HTTP_429_TOO_MANY_REQUESTS, "message": "Rate limit exceeded"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_exception", path=request.url.path)
    sentry_sdk.capture_exception(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/menu", response_model=list[MenuItem], response_model_exclude_none=True)
async def list_menu_items(
    store: MenuRepository = Depends(get_menu_store),
) -> list[MenuItem]:
    return store.list_items()


@app.get("/api/menu/{item_id}", response_model=MenuItem, response_model_exclude_none=True)
async def get_menu_item(
    item_id: str,
    store: MenuRepository = Depends(get_menu_store),
) -> MenuItem:
    return store.get_item(parse_item_id(item_id))


@app.post(
    "/api/menu",
    response_model=MenuItem,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.write_rate_limit)
async def create_menu_item(
    request: Request,
    store: MenuRepository = Depends(get_menu_store),
) -> MenuItem:
    payload = await read_menu_item_payload(request)
    return store.create_item(payload)


@app.put("/api/menu/{item_id}", response_model=MenuItem, response_model_exclude_none=True)
@limiter.limit(settings.write_rate_limit)
async def replace_menu_item(
    request: Request,
    item_id: str,
    store: MenuRepository = Depends(get_menu_store),
) -> MenuItem:
    payload = await read_menu_item_payload(request)
    return store.replace_item(parse_item_id(item_id), payload)


@app.delete("/api/menu/{item_id}")
@limiter.limit(settings.write_rate_limit)
async def delete_menu_item(
    request: Request,
    item_id: str,
    store: MenuRepository = Depends(get_menu_store),
) -> dict[str, str]:
    store.delete_item(parse_item_id(item_id))
    return {"message": "Menu item deleted successfully"}
