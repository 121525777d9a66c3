from fastapi import Request

from authbot.domain.ports.unit_of_work import UnitOfWorkPort
from authbot.infrastructure.db.pool import get_pool
from authbot.infrastructure.db.uow import PgUnitOfWork
from authbot.infrastructure.telegram.runner import BotRunner
from authbot.settings import get_settings


def get_uow() -> UnitOfWorkPort:
    return PgUnitOfWork(get_pool())


def get_code_single_use() -> bool:
    return get_settings().code_single_use


def get_bot_runner(request: Request) -> BotRunner:
    # This is set in authbot.main lifespan()
    return request.app.state.bot_runner
