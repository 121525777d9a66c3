from pydantic import BaseModel, Field, field_validator


class VerifyCodeIn(BaseModel):
    code: str = Field(..., description="Code shown to the user in the chat", max_length=32)

    @field_validator("code")
    @classmethod
    def code_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("code must not be empty")
        return value
