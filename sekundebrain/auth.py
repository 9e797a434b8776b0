# -*- coding: utf-8 -*-
"""Unlock gate and passcode hashing.

The gate is a one-shot ``LOCKED -> UNLOCKED`` transition per app activation.
It tries a biometric check first and falls back to the passcode check when
biometrics are unavailable or fail. Callers only see a boolean.
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from loguru import logger

from .errors import ValidationError

# ---------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------

PH = PasswordHasher(
    time_cost=2,
    memory_cost=102_400,
    parallelism=8,
    hash_len=32,
    salt_len=16,
)

Check = Callable[[], bool]


# ---------------------------------------------------------------------
# Passcode hashing
# ---------------------------------------------------------------------

def hash_passcode(passcode: str) -> str:
    """Return an argon2 hash for *passcode*."""
    if not passcode or not passcode.strip():
        raise ValidationError("Passcode is required")
    return PH.hash(passcode)


def verify_passcode(pwd_hash: str, passcode: str) -> bool:
    """True if *passcode* matches *pwd_hash*; never raises on mismatch."""
    if not pwd_hash or not passcode:
        return False
    try:
        return PH.verify(pwd_hash, passcode)
    except (VerificationError, InvalidHashError):
        return False


# ---------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------

class UnlockState(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class AuthGate:
    """Blocks display of journal contents until an unlock succeeds."""

    def __init__(self, biometric: Optional[Check] = None) -> None:
        self.biometric = biometric
        self.state = UnlockState.LOCKED

    @property
    def unlocked(self) -> bool:
        return self.state is UnlockState.UNLOCKED

    def _try_biometric(self) -> bool:
        if self.biometric is None:
            logger.debug("Biometrics unavailable, using passcode")
            return False
        try:
            ok = bool(self.biometric())
        except Exception as exc:
            logger.warning("Biometric check errored: {}", exc)
            return False
        if not ok:
            logger.info("Biometric check failed, falling back to passcode")
        return ok

    def request_unlock(self, passcode_check: Check) -> bool:
        """Attempt an unlock; failures leave the gate locked and may be retried."""
        if self.unlocked:
            return True
        if self._try_biometric() or self._try_passcode(passcode_check):
            self.state = UnlockState.UNLOCKED
            logger.info("Journal unlocked")
            return True
        return False

    def _try_passcode(self, passcode_check: Check) -> bool:
        try:
            ok = bool(passcode_check())
        except Exception as exc:
            logger.warning("Passcode check errored: {}", exc)
            return False
        if not ok:
            logger.info("Passcode check failed")
        return ok

    def lock(self) -> None:
        """Relock for a new app activation."""
        self.state = UnlockState.LOCKED
