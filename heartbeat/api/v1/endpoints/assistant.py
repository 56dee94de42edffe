from fastapi import APIRouter, Depends
from heartbeat.models.profile import Profile
from heartbeat.schemas.assistant import AssistantRequest, AssistantResponse
from heartbeat.services.assistant import reply_to
from heartbeat.api.v1.endpoints.auth import get_current_profile

router = APIRouter()


@router.post("", response_model=AssistantResponse)
async def ask_assistant(body: AssistantRequest, profile: Profile = Depends(get_current_profile)):
    return AssistantResponse(reply=reply_to(body.message, profile.first_name))
