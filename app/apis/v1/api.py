# backend/app/apis/v1/api.py
from fastapi import APIRouter
from .endpoints import listings, devices
from app.core.config import settings

api_router = APIRouter()

api_router.include_router(devices.router, prefix=settings.API_V1_STR, tags=["devices"])
api_router.include_router(listings.router, prefix=settings.API_V1_STR + "/listings", tags=["listings"])
