from typing import Annotated

from fastapi import APIRouter, Depends

from authbot.infrastructure.telegram.runner import BotRunner
from authbot.presentation.dependencies import get_bot_runner
from authbot.schemas.responses import BotStartOut

router = APIRouter(prefix="/bots", tags=["Bots"])


@router.post("/start", status_code=200, response_model=BotStartOut)
async def post_start_bot(runner: Annotated[BotRunner, Depends(get_bot_runner)]):
    started = await runner.start()
    return BotStartOut(status="started" if started else "already_running")
