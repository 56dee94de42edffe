from fastapi import APIRouter
from heartbeat.api.v1.endpoints import (
    admin, assistant, auth, dashboard, donations, emergency_requests,
    geocode, messages, profile, realtime, rewards, rpc,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(donations.router, prefix="/donations", tags=["donations"])
api_router.include_router(emergency_requests.router, prefix="/emergency-requests", tags=["emergency-requests"])
api_router.include_router(rewards.router, prefix="/rewards", tags=["rewards"])
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
api_router.include_router(rpc.router, prefix="/rpc", tags=["rpc"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(geocode.router, prefix="/geocode", tags=["geocode"])
api_router.include_router(assistant.router, prefix="/assistant", tags=["assistant"])
api_router.include_router(realtime.router, prefix="/realtime", tags=["realtime"])
