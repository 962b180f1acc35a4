"""
FastAPI backend for the GigBoard freelance marketplace
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.orm import Session

from config import API_HOST, API_PORT, API_RELOAD, API_VERSION, CORS_ORIGINS, LOG_LEVEL
from database import SessionLocal, Task, User, get_db, init_db
from marketplace.admin_router import router as admin_router
from marketplace.errors import MarketplaceError
from marketplace.router import limiter, router as marketplace_router
from marketplace.skills import seed_skills
from models import SystemStatusResponse

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("gigboard.api")

START_TIME = datetime.utcnow()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown"""
    # Startup
    init_db()
    db = SessionLocal()
    try:
        seed_skills(db)
    finally:
        db.close()
    logger.info("[Startup] GigBoard API %s ready", API_VERSION)
    yield
    # Shutdown
    logger.info("[Shutdown] GigBoard API stopping")


app = FastAPI(
    title="GigBoard API",
    description="Freelance marketplace backend with freelancer recommendations",
    version=API_VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    if exc.status_code >= 500:
        logger.error("[API] %s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.debug("[API] %s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


app.include_router(marketplace_router)
app.include_router(admin_router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": "GigBoard API",
        "version": API_VERSION,
        "status": "running",
        "docs": "/docs"
    }


# System status endpoint
@app.get("/status", response_model=SystemStatusResponse)
def get_system_status(db: Session = Depends(get_db)):
    """Get system status"""
    database_connected = True
    users = 0
    open_tasks = 0
    try:
        db.execute(text("SELECT 1"))
        users = db.query(User).count()
        open_tasks = db.query(Task).filter(Task.status == "open").count()
    except Exception as exc:  # noqa: BLE001
        logger.warning("[Status] database check failed: %s", exc)
        database_connected = False

    return SystemStatusResponse(
        status="healthy" if database_connected else "unhealthy",
        version=API_VERSION,
        database_connected=database_connected,
        users=users,
        open_tasks=open_tasks,
        uptime=str(datetime.utcnow() - START_TIME),
    )


# Health check
@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Simple health check endpoint"""
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except Exception:  # noqa: BLE001
        return {"status": "unhealthy", "database": "disconnected"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_RELOAD
    )
