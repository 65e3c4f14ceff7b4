from fastapi import APIRouter

from assistant_chat_service.platform.server.routes.base import base_router

root = APIRouter()
root.include_router(base_router)
