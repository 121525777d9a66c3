from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    id: int | None = None
    external_id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    phone_number: str | None = None
    created_at: datetime | None = None

    def __post_init__(self):
        if self.external_id is None:
            raise ValueError("external_id is required")
        self.external_id = str(self.external_id).strip()
        if not self.external_id:
            raise ValueError("external_id cannot be empty")
        if self.phone_number:
            self.phone_number = normalize_phone(self.phone_number)

    def identity(self) -> "Identity":
        return Identity(
            external_id=self.external_id,
            first_name=self.first_name,
            last_name=self.last_name,
            phone_number=self.phone_number,
        )


@dataclass
class ActiveCode:
    account_id: int
    code: str
    expires_at: datetime
    id: int | None = None
    created_at: datetime | None = None

    def is_live(self, now: datetime) -> bool:
        return self.expires_at > now


@dataclass(frozen=True)
class Identity:
    external_id: str
    first_name: str | None
    last_name: str | None
    phone_number: str | None


@dataclass(frozen=True)
class VerificationResult:
    is_valid: bool
    identity: Identity | None = None

    @classmethod
    def invalid(cls) -> "VerificationResult":
        return cls(is_valid=False)


def normalize_phone(phone_number: str) -> str:
    """Telegram sends contacts with or without the leading '+'."""
    phone = phone_number.strip().replace(" ", "")
    if phone and not phone.startswith("+"):
        phone = "+" + phone
    return phone
