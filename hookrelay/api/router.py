from fastapi import APIRouter

from hookrelay.api.routes import auth, ingest, inspect, webhooks

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(ingest.router)
api_router.include_router(webhooks.router)
api_router.include_router(inspect.router)
