class DomainError(Exception):
    """Base class for all domain-level errors."""

    pass


class AccountNotFound(DomainError):
    """No account matches the chat user (contact was never shared)."""

    pass


class ContactOwnershipMismatch(DomainError):
    """The shared contact belongs to somebody other than the sender."""

    pass


class ChatApiError(DomainError):
    """A chat platform call failed (HTTP, transport or API-level error)."""

    def __init__(
        self,
        description: str,
        *,
        error_code: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(description)
        self.description = description
        self.error_code = error_code
        self.retry_after = retry_after

    @property
    def retryable(self) -> bool:
        # transport failures carry no error_code
        if self.error_code is None:
            return True
        return self.error_code == 429 or self.error_code >= 500

    @property
    def not_modified(self) -> bool:
        """The edit would not change the message; the desired state is already shown."""
        return "message is not modified" in self.description.lower()
