import logging

from authbot.domain.entities import VerificationResult
from authbot.domain.ports.unit_of_work import UnitOfWorkPort
from authbot.domain.services import is_well_formed_code

logger = logging.getLogger(__name__)


async def verify_code(
    uow: UnitOfWorkPort,
    code: str,
    *,
    single_use: bool = False,
) -> VerificationResult:
    """
    Redeem a code for the owner's identity.

    Unknown, malformed or expired codes give an invalid result, never an error.
    With single_use=False the code keeps verifying until it expires; with
    single_use=True the first successful call deletes it.
    """
    candidate = code.strip()
    if not is_well_formed_code(candidate):
        return VerificationResult.invalid()

    async with uow as transaction:
        found = await transaction.codes.find_by_code(candidate)
        if found is None:
            return VerificationResult.invalid()
        record, account = found
        if single_use:
            consumed = await transaction.codes.invalidate(
                record.account_id, code=record.code
            )
            if not consumed:
                # a concurrent redemption got there first
                return VerificationResult.invalid()
            await transaction.commit()

    logger.info(
        "code verified",
        extra={"account_id": account.id, "single_use": single_use},
    )
    return VerificationResult(is_valid=True, identity=account.identity())
