"""
FastAPI application for TeachClone
Teachers upload lessons, an AI learns their style, students chat with the clone.
"""
import traceback

from dotenv import load_dotenv

# Load env vars immediately
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from teachclone import __version__
from teachclone.api.routes import admin, auth, chat, jobs, videos
from teachclone.models.database import SessionLocal, create_tables
from teachclone.services.accounts import ensure_admin

# ============= FASTAPI APP SETUP =============
app = FastAPI(
    title="TeachClone API",
    description="AI teacher clones built from teaching videos",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Log unhandled exceptions and answer with a JSON 500"""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}")
    logger.error(f"Traceback: {traceback.format_exc()}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.on_event("startup")
async def startup_event():
    """Create tables and seed the admin account"""
    create_tables()
    logger.info("Database tables created/verified")
    db = SessionLocal()
    try:
        ensure_admin(db)
    finally:
        db.close()


app.include_router(auth.router)
app.include_router(videos.router)
app.include_router(admin.router)
app.include_router(chat.router)
app.include_router(jobs.router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}
