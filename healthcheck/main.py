import logging
from contextlib import asynccontextmanager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    force=True
)

from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from healthcheck.database import verify_store_connection
from healthcheck.dependencies import LoginRequiredError, session_middleware
from healthcheck.rate_limiter import rate_limit_middleware, load_rate_limit_script
from healthcheck.routers.auth import auth_router
from healthcheck.routers.measurements import measurement_router
from healthcheck.routers.pages import pages_router
from healthcheck.security_headers import security_headers_middleware
from healthcheck.templating import STATIC_DIR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Refuse to start without the document store; load the rate limit script."""
    await run_in_threadpool(verify_store_connection)
    await load_rate_limit_script()
    yield


app = FastAPI(title="Health Check", version="1.0.0", lifespan=lifespan)

# Last added runs first: security headers, then rate limiting, then session lookup.
app.add_middleware(BaseHTTPMiddleware, dispatch=session_middleware)
app.add_middleware(BaseHTTPMiddleware, dispatch=rate_limit_middleware)
app.add_middleware(BaseHTTPMiddleware, dispatch=security_headers_middleware)

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

app.include_router(pages_router)
app.include_router(auth_router)
app.include_router(measurement_router)


@app.exception_handler(LoginRequiredError)
async def login_required_handler(request: Request, exc: LoginRequiredError):
    return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)


@app.get("/health", response_model=dict, status_code=status.HTTP_200_OK)
def health_check() -> dict:
    return {"status": "healthy"}
