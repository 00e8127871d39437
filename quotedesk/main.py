from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, Optional
import hmac
import logging

from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from quotedesk.catalog import Catalog
from quotedesk.errors import (
    ConfirmationRequired, QuoteDeskError, RateLimited, Unauthorized, ValidationError,
)
from quotedesk.lifecycle import QuoteManager
from quotedesk.logging_config import setup_logging
from quotedesk.middleware import global_rate_limit, request_trace, security_headers
from quotedesk.notifier import QuoteNotifier
from quotedesk.ratelimit import FixedWindowLimiter, enforce
from quotedesk.repo import JsonFileStore, RecordStore
from quotedesk.runtime_settings import Settings, load_settings
from quotedesk.schemas import DeletedOut, QuoteCreatedOut, QuoteListOut, StatusUpdateIn
from quotedesk.validation import validate_submission

log = logging.getLogger("quotedesk.api")

QUOTE_LIMIT_MESSAGE = "Too many quote submissions, please try again later."
FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


# ---------------- Request Helpers ----------------
async def _read_payload(request: Request) -> Any:
    """JSON object or form body as a plain dict; anything unparsable is a 400."""
    ctype = request.headers.get("content-type", "")
    if ctype.startswith(FORM_TYPES):
        form = await request.form()
        return dict(form)
    try:
        return await request.json()
    except ValueError:
        return None


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    notifier: Optional[QuoteNotifier] = None,
    dispatch: Optional[Callable[..., None]] = None,
    catalog: Optional[Catalog] = None,
) -> FastAPI:
    settings = settings or load_settings()
    catalog = catalog or Catalog(settings.SITE_CONFIG)
    store = store if store is not None else JsonFileStore(settings.DATA_FILE)
    notifier = notifier if notifier is not None else QuoteNotifier(settings, catalog)
    manager = QuoteManager(store, catalog, notifier=notifier, dispatch=dispatch)

    global_limiter = FixedWindowLimiter(settings.RATE_LIMIT_MAX, settings.RATE_LIMIT_WINDOW)
    quote_limiter = FixedWindowLimiter(settings.QUOTE_LIMIT_MAX, settings.QUOTE_LIMIT_WINDOW)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        notifier.verify()
        log.info("Serving %s quote desk, data file %s", catalog.business_name, settings.DATA_FILE)
        yield

    app = FastAPI(title=f"{catalog.business_name} Quote Desk", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.catalog = catalog
    app.state.manager = manager
    app.state.limiters = {"global": global_limiter, "quote": quote_limiter}

    # Starlette runs the last-added middleware first.
    app.middleware("http")(security_headers)
    if not settings.DISABLE_RATE_LIMIT:
        app.middleware("http")(global_rate_limit(global_limiter))
    app.middleware("http")(request_trace)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------- Dependencies ----------------
    def require_admin(request: Request) -> None:
        if not settings.ADMIN_API_KEY:
            return
        supplied = request.headers.get("X-Admin-Key", "")
        if not hmac.compare_digest(supplied.encode(), settings.ADMIN_API_KEY.encode()):
            raise Unauthorized()

    def limit_submissions(request: Request) -> None:
        if settings.DISABLE_RATE_LIMIT:
            return
        enforce(quote_limiter, request, "quote", QUOTE_LIMIT_MESSAGE)

    admin = [Depends(require_admin)]

    # ---------------- Error Rendering ----------------
    @app.exception_handler(QuoteDeskError)
    async def quote_desk_error(request: Request, exc: QuoteDeskError):
        if exc.status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        headers = {"Retry-After": str(exc.retry_after)} if isinstance(exc, RateLimited) else None
        return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse({"message": message}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"message": "Something went wrong!"}, status_code=500)

    # ---------------- Public ----------------
    @app.post("/quotes", status_code=201, response_model=QuoteCreatedOut,
              dependencies=[Depends(limit_submissions)])
    async def create_quote(request: Request) -> QuoteCreatedOut:
        payload = await _read_payload(request)
        result = validate_submission(payload, catalog)
        if not result.ok:
            raise ValidationError(result.violations)
        quote = await run_in_threadpool(manager.create, result.submission)
        return QuoteCreatedOut(id=quote.id)

    @app.get("/options")
    def options() -> Dict[str, Any]:
        return catalog.to_dict()

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "quotes": len(store.read_all())}

    # ---------------- Admin ----------------
    @app.get("/quotes", response_model=QuoteListOut, dependencies=admin)
    def list_quotes(
        status: Optional[str] = None,
        projectType: Optional[str] = None,
        sortBy: str = "createdAt",
        order: str = "desc",
    ) -> QuoteListOut:
        quotes = manager.list(status=status, project_type=projectType, sort_by=sortBy, order=order)
        return QuoteListOut(data=[q.to_dict() for q in quotes], total=len(quotes))

    @app.delete("/quotes", response_model=DeletedOut, dependencies=admin)
    def delete_all_quotes(confirm: bool = False) -> DeletedOut:
        if not confirm:
            raise ConfirmationRequired()
        return DeletedOut(deleted=manager.delete_all())

    @app.get("/quotes/{quote_id}", dependencies=admin)
    def get_quote(quote_id: str):
        return manager.get(quote_id).to_dict()

    @app.patch("/quotes/{quote_id}/status", dependencies=admin)
    async def update_status(quote_id: str, request: Request):
        payload = await _read_payload(request)
        body = StatusUpdateIn(status=payload.get("status") if isinstance(payload, dict) else None)
        updated = await run_in_threadpool(manager.update_status, quote_id, body.status)
        return updated.to_dict()

    @app.delete("/quotes/{quote_id}", dependencies=admin)
    def delete_quote(quote_id: str):
        manager.delete(quote_id)
        return {"ok": True, "message": "Quote deleted successfully"}

    @app.get("/stats", dependencies=admin)
    def stats() -> Dict[str, int]:
        return manager.stats()

    return app


app = create_app()


# ---------------- Entrypoint ----------------
def run() -> None:
    import uvicorn

    settings = app.state.settings
    setup_logging(level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
