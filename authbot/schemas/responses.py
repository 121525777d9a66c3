from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from authbot.domain.entities import VerificationResult


class _CamelOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class VerifyInvalidOut(_CamelOut):
    is_valid: Literal[False] = Field(False, alias="isValid")


class VerifyValidOut(_CamelOut):
    is_valid: Literal[True] = Field(True, alias="isValid")
    external_id: str = Field(..., alias="externalId")
    first_name: str | None = Field(None, alias="firstName")
    last_name: str | None = Field(None, alias="lastName")
    phone_number: str | None = Field(None, alias="phoneNumber")


def verify_out(result: VerificationResult) -> VerifyValidOut | VerifyInvalidOut:
    if not result.is_valid or result.identity is None:
        return VerifyInvalidOut()
    identity = result.identity
    return VerifyValidOut(
        external_id=identity.external_id,
        first_name=identity.first_name,
        last_name=identity.last_name,
        phone_number=identity.phone_number,
    )


class BotStartOut(BaseModel):
    status: Literal["started", "already_running"]
