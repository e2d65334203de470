"""
EPK Kernel — Vault gate

Session-local lock state for the vault section. Never persisted: a new page
session always starts LOCKED.

    LOCKED --submit--> UNLOCKING --match--> UNLOCKED --lock--> LOCKED
                                 --mismatch--> LOCKED

There is no retry limit and no lockout.
"""

from __future__ import annotations

from enum import Enum

from engine.kernel.types import DEFAULT_VAULT_PIN, PIN_PATTERN


class GateState(str, Enum):
    LOCKED = "locked"
    UNLOCKING = "unlocking"
    UNLOCKED = "unlocked"


def is_well_formed_pin(pin: str) -> bool:
    """A submitted PIN must be exactly four digits."""
    return bool(PIN_PATTERN.match(pin or ""))


class VaultGate:
    """Lock state for one page session."""

    def __init__(self, stored_pin: str | None = None) -> None:
        self.stored_pin = stored_pin or DEFAULT_VAULT_PIN
        self.state = GateState.LOCKED

    def rejects_format(self, pin: str) -> bool:
        """
        Whether a submission is refused before matching. The 4-digit rule
        only applies when the stored PIN follows it; older profiles keep
        whatever PIN they were saved with and match it exactly.
        """
        return is_well_formed_pin(self.stored_pin) and not is_well_formed_pin(pin)

    @property
    def unlocked(self) -> bool:
        return self.state is GateState.UNLOCKED

    def submit(self, pin: str) -> bool:
        """
        Check a submitted PIN against the stored one (exact string match).

        Returns True only when this submission moved the gate from LOCKED to
        UNLOCKED; that is the moment to count an unlock. Submitting while
        already unlocked changes nothing and returns False.
        """
        if self.state is GateState.UNLOCKED:
            return False

        self.state = GateState.UNLOCKING
        if pin == self.stored_pin:
            self.state = GateState.UNLOCKED
            return True

        self.state = GateState.LOCKED
        return False

    def lock(self) -> None:
        self.state = GateState.LOCKED
