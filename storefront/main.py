# --- Imports ---
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from . import assets, pages
from .catalog import list_products, load_seed_products, seed_if_empty
from .config import Settings, load_settings
from .database import Database, ensure_database_exists, get_db
from .errors import InvalidInput, StoreError
from .logging_config import configure_logging
from .orders import OrderService
from .schemas import CheckoutRequest

logger = structlog.get_logger(__name__)

# Hardened response headers sent on every response.
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


class CachedStaticFiles(StaticFiles):
    """Static files served with long-lived immutable cache headers."""

    async def get_response(self, path, scope):
        response = await super().get_response(path, scope)
        if response.status_code == 200:
            response.headers["Cache-Control"] = "public, max-age=31536000, immutable"
        return response


async def read_checkout(request: Request) -> CheckoutRequest:
    """Checkout fields from a JSON body or a url-encoded/multipart form."""
    try:
        if request.headers.get("content-type", "").startswith("application/json"):
            body = await request.json()
        else:
            body = dict(await request.form())
        return CheckoutRequest.model_validate(body)
    except (ValueError, ValidationError) as e:
        raise InvalidInput() from e


def bootstrap(database: Database, settings: Settings) -> None:
    """Ordered startup: create database, connect, sync schema, seed the catalog."""
    if settings.create_db_if_missing:
        ensure_database_exists(settings)
    else:
        logger.info("create_db_skipped", reason="CREATE_DB_IF_MISSING=false")

    # Parse the seed list before touching the database so bad JSON fails fast.
    defaults = load_seed_products(settings.seed_products_json)

    database.initialize()
    if settings.schema_sync:
        database.create_schema()

    session = database.session()
    try:
        seed_if_empty(session, defaults)
    finally:
        session.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    database = Database(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            bootstrap(database, settings)
        except Exception:
            logger.exception("startup_failed")
            raise
        logger.info("server_ready", port=settings.port)
        yield
        logger.info("shutdown_signal")
        database.dispose()

    # --- App Instance ---
    app = FastAPI(title="Web Forx Online Storeshop", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(GZipMiddleware)

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    local_static = assets.static_dir()
    if local_static is not None:
        app.mount("/static", CachedStaticFiles(directory=local_static), name="static")

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        # Only the generic message leaves the server.
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    # --- Health endpoints ---
    @app.get("/healthz", response_class=PlainTextResponse)
    def healthz():
        """Liveness probe, always up while the process runs."""
        return "ok"

    @app.get("/readyz", response_class=PlainTextResponse)
    def readyz(request: Request):
        """Readiness probe: ready once the database connection is initialized."""
        if request.app.state.database.is_initialized:
            return "ready"
        return PlainTextResponse("not ready", status_code=503)

    # --- Pages ---
    @app.get("/", response_class=HTMLResponse)
    def home():
        return pages.home_page(assets.asset_url(settings, assets.HERO_IMAGE))

    @app.get("/products", response_class=HTMLResponse)
    def products(db: Session = Depends(get_db)):
        return pages.products_page(list_products(db), lambda key: assets.asset_url(settings, key))

    @app.get("/cart", response_class=HTMLResponse)
    def cart():
        return pages.cart_page()

    @app.get("/checkout", response_class=HTMLResponse)
    def checkout_form():
        return pages.checkout_page()

    @app.post("/checkout", response_class=HTMLResponse)
    async def checkout(request: Request, db: Session = Depends(get_db)):
        """Create an order from the posted cart and render the confirmation."""
        form = await read_checkout(request)
        service = OrderService(db, trust_client_prices=settings.trust_client_prices)
        order_id = await run_in_threadpool(service.submit_order, form.name, form.address, form.cartData)
        return pages.confirmation_page(order_id)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
