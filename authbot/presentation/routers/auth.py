from typing import Annotated

from fastapi import APIRouter, Depends

from authbot.application.verify_code import verify_code
from authbot.domain.ports.unit_of_work import UnitOfWorkPort
from authbot.presentation.dependencies import get_code_single_use, get_uow
from authbot.schemas.requests import VerifyCodeIn
from authbot.schemas.responses import VerifyInvalidOut, VerifyValidOut, verify_out

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/verify",
    status_code=200,
    response_model=VerifyValidOut | VerifyInvalidOut,
)
async def post_verify_code(
    body: VerifyCodeIn,
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
    single_use: Annotated[bool, Depends(get_code_single_use)],
):
    result = await verify_code(uow, body.code, single_use=single_use)
    return verify_out(result)
