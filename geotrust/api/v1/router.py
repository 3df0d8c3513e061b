from fastapi import APIRouter
from geotrust.api.v1 import auth, geocode, hunt, places

api_router = APIRouter(prefix="/v1")
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(hunt.router, prefix="/hunt", tags=["hunt"])
api_router.include_router(places.router, prefix="/places", tags=["places"])
api_router.include_router(geocode.router, prefix="/geocode", tags=["geocode"])
