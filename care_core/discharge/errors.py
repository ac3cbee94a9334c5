# care_core/discharge/errors.py
from __future__ import annotations

NOT_FOUND = "NOT_FOUND"
INVALID_RECORD = "INVALID_RECORD"
ACCESS_DENIED = "ACCESS_DENIED"
PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
PARTIAL_GENERATION_FAILURE = "PARTIAL_GENERATION_FAILURE"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"

FATAL_CODES = frozenset({NOT_FOUND, INVALID_RECORD, ACCESS_DENIED, PAYMENT_REQUIRED})


class DischargeError(Exception):
    """
    Precondition failure. Raised before anything is written.
    The message is fixed text; it never echoes record contents.
    """

    def __init__(self, code: str, message: str = ""):
        self.code = code
        self.message = message or code.replace("_", " ").capitalize()
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"
