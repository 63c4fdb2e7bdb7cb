"""API v1 router configuration."""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    admin,
    auth,
    blacklist,
    chats,
    favorites,
    feeds,
    health,
    providers,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(providers.router, prefix="/providers", tags=["Providers"])
api_router.include_router(chats.router, prefix="/chats", tags=["Chats"])
api_router.include_router(feeds.router, prefix="/feeds", tags=["Feed"])
api_router.include_router(favorites.router, prefix="/favorites", tags=["Favorites"])
api_router.include_router(blacklist.router, prefix="/blacklist", tags=["Blacklist"])
api_router.include_router(admin.router, tags=["Admin"])
