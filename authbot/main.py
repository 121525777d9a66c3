import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from authbot.application.expiration import ExpirationScheduler
from authbot.application.lifecycle import LifecycleController
from authbot.application.retry import RetryPolicy
from authbot.infrastructure.db.pool import close_pool, get_pool, open_pool
from authbot.infrastructure.db.uow import PgUnitOfWork
from authbot.infrastructure.redis_cache.instruction_flags import RedisInstructionFlags
from authbot.infrastructure.redis_cache.pool import close_redis, get_redis
from authbot.infrastructure.telegram.client import TelegramBotClient
from authbot.infrastructure.telegram.poller import BotPoller
from authbot.infrastructure.telegram.runner import BotRunner
from authbot.logging import setup_logging
from authbot.presentation.api import api
from authbot.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# fails here, before serving anything, when BOT_TOKEN is missing
settings = get_settings()


def build_bot(settings: Settings) -> tuple[TelegramBotClient, ExpirationScheduler, BotRunner]:
    chat = TelegramBotClient(settings.bot_token, base_url=settings.telegram_api_url)
    retry_policy = RetryPolicy(
        attempts=settings.chat_retry_attempts,
        base=settings.chat_retry_base_seconds,
        max_delay=settings.chat_retry_max_delay_seconds,
    )
    scheduler = ExpirationScheduler(chat, retry_policy=retry_policy)
    controller = LifecycleController(
        uow_factory=lambda: PgUnitOfWork(get_pool()),
        chat=chat,
        scheduler=scheduler,
        instruction_flags=RedisInstructionFlags(
            get_redis(), ttl_seconds=settings.instructions_flag_ttl_seconds
        ),
        code_ttl_seconds=settings.code_ttl_seconds,
        brand_name=settings.brand_name,
        retry_policy=retry_policy,
    )
    poller = BotPoller(
        client=chat,
        handler=controller.handle,
        poll_timeout=settings.poll_timeout_seconds,
    )
    return chat, scheduler, BotRunner(poller)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    await open_pool()
    chat, scheduler, runner = build_bot(settings)
    app.state.bot_runner = runner
    if settings.bot_autostart:
        await runner.start()

    try:
        yield
    finally:
        # shutdown
        await runner.stop()
        await scheduler.aclose()
        await chat.aclose()
        await close_redis()
        await close_pool()


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="Auth Code Bot", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.include_router(api)
    return app


app = create_app()
