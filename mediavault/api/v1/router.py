from fastapi import APIRouter
from mediavault.api.v1.endpoints import activities, albums, assets, auth, shared_links, sync


api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(assets.router, prefix="/assets", tags=["assets"])
api_router.include_router(sync.router, prefix="/sync", tags=["sync"])
api_router.include_router(albums.router, prefix="/albums", tags=["albums"])
api_router.include_router(activities.router, prefix="/activities", tags=["activities"])
api_router.include_router(shared_links.router, prefix="/shared-links", tags=["shared-links"])
