# notekeep/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notekeep.config import settings
from notekeep.core.db import init_db, close_db
from notekeep.core.bootstrap import ensure_upload_dir

from notekeep.api.v1.routers import auth, notes, files

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def on_startup():
    # Make sure attachments have somewhere to go before accepting uploads
    ensure_upload_dir()
    await init_db()
    logger.info("[startup] %s ready (env=%s)", settings.APP_NAME, settings.env)

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(notes.router, prefix="/api/v1")
app.include_router(files.router, prefix="/api/v1")

@app.get("/healthz")
def healthz():
    return {"ok": True}
