"""
FastAPI Application — Application Service.

Architecture:
  - PostgreSQL (prod) / SQLite (dev) for applications, documents, history, tags
  - User, product and tag services reached over HTTP (httpx)
  - Actor id from the gateway's X-User-Id header, bearer forwarded as-is
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from appservice.api.dependencies import close_clients
from appservice.api.routes.applications import router as applications_router
from appservice.api.schemas.responses import HealthResponse
from appservice.config.settings import get_settings
from appservice.core.errors import AppServiceError
from appservice.infrastructure.db.database import get_database

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Application Service",
    description="Applications linking users to products: lifecycle, status audit, tags and cursor paging.",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Startup / shutdown ──
@app.on_event("startup")
async def startup():
    """Configure logging and create tables."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    get_database().init()
    logger.info(f"Application Service started ({settings.env})")


@app.on_event("shutdown")
async def shutdown():
    close_clients()


# ── Errors ──
@app.exception_handler(AppServiceError)
async def app_error_handler(request: Request, exc: AppServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc}")
    content = {"detail": exc.message, "code": exc.code}
    if exc.context:
        content["context"] = exc.context
    return JSONResponse(status_code=exc.status_code, content=content)


app.include_router(applications_router, prefix="/api/v1", tags=["Applications"])


# ── Health ──
@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", version=VERSION, database=get_database().kind)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
