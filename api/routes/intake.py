from fastapi import APIRouter, Depends

from generation.llm import IntakeReply, user_message
from generation.prompts import INTAKE_SYSTEM_PROMPT
from ..deps import chat_model, require_user, run_blocking
from ..schemas import IntakeRequest, ok
from ..store import AuthenticatedUser

router = APIRouter(prefix="/api")


@router.post("/client-intake", summary="One turn of the creative brief conversation")
async def client_intake(request: IntakeRequest, user: AuthenticatedUser = Depends(require_user)) -> dict:
    model = chat_model(title="Site Builder Creative Brief")
    history = [turn.model_dump() for turn in request.conversationHistory]

    reply = await run_blocking(
        model.converse,
        INTAKE_SYSTEM_PROMPT,
        history,
        user_message(request.message, request.referenceImages),
        IntakeReply,
        4096,
    )
    return ok(action=reply.action, reply=reply.reply, creativeBrief=reply.creativeBrief)
