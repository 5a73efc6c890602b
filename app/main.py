# backend/app/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.database import engine, Base
from app.apis.v1.api import api_router
from app.core.config import settings
from app.core.exceptions import FreebieError, freebie_error_handler
from app.core.logging import get_logger
from app import models  # noqa: F401 register tables on Base.metadata

logger = get_logger(__name__)

# Create database tables
logger.info("Attempting to create database tables...")
try:
    Base.metadata.create_all(bind=engine)
except Exception:
    logger.exception("Error creating database tables")

fastapi_kwargs = {
    "title": settings.PROJECT_NAME,
    "version": "0.1.0"
}

if settings.ENV == 'prod':
    fastapi_kwargs["docs_url"] = None
    fastapi_kwargs["redoc_url"] = None
    fastapi_kwargs["openapi_url"] = None

app = FastAPI(**fastapi_kwargs)

# The mobile client calls the API directly, so any origin is accepted
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(FreebieError, freebie_error_handler)

# Include API routers
app.include_router(api_router)


@app.get("/", tags=["Root"])
async def read_root():
    return {"message": "Welcome to the Freebie Finder API!"}


@app.get(f"{settings.API_V1_STR}/health")
def health():
    return {"status": "ok"}
