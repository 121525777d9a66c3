from typing import Protocol


class InstructionFlagsPort(Protocol):
    async def mark_once(self, external_id: str) -> bool:
        """
        Atomically set the "instructions sent" flag.
        True if this call set it (caller should send), False if already set.
        """

    async def clear(self, external_id: str) -> None:
        """Forget the flag (used when the notice could not be delivered)."""
