from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from juriscloud.config import CORS_ORIGINS, LOG_LEVEL
from juriscloud.database import init_db
from juriscloud.auth.routes import router as auth_router
from juriscloud.dashboard.routes import router as dashboard_router
from juriscloud.documents.routes import router as documents_router, storage_router
from juriscloud.resources.routes import routers as resource_routers

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables
    init_db()
    logger.info("Database ready")
    yield


app = FastAPI(
    title="JurisCloud API",
    description="Practice management for law firms: cases, clients, tasks, invoices and appointments",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(CORS_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Add middleware for COOP/COEP headers ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin-allow-popups"
        response.headers["Cross-Origin-Embedder-Policy"] = "unsafe-none"
        return response

app.add_middleware(SecurityHeadersMiddleware)

# Include routers
app.include_router(auth_router)
app.include_router(dashboard_router)
for resource_router in resource_routers:
    app.include_router(resource_router)
app.include_router(documents_router)
app.include_router(storage_router)


@app.get("/")
def root():
    return {
        "message": "JurisCloud API",
        "version": "1.0.0",
        "status": "running"
    }

@app.get("/health")
def health_check():
    return {"status": "healthy"}
