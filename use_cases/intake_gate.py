"""Email verification in front of the public suggestion form.

Two steps: ``email`` (ask for a one-time code) and ``otp`` (confirm it).
Visitors are allowed to create a new identity here; no profile row is ever
created for them, so they never gain access to the admin surface.
"""

import logging
from typing import Callable, Optional

from use_cases.directory_manager import validate_email
from use_cases.errors import InvalidOrExpiredCodeError, ValidationError

log = logging.getLogger(__name__)

STEP_EMAIL = "email"
STEP_OTP = "otp"


class PublicIntakeGate:
    def __init__(self, identity, on_verified: Optional[Callable[[str], None]] = None):
        self.identity = identity
        self.on_verified = on_verified
        self.step = STEP_EMAIL
        self.email: Optional[str] = None
        self.verified_email: Optional[str] = None

    @property
    def verified(self) -> bool:
        return self.verified_email is not None

    def request_code(self, email: str) -> None:
        email = validate_email(email)
        self.identity.sign_in_with_one_time_code(email, allow_new_identity=True)
        self.email = email
        self.step = STEP_OTP
        log.info("Intake code sent to %s", email)

    def verify_code(self, email: str, code: str) -> str:
        code = (code or "").strip()
        if not code:
            raise ValidationError("Ingresá el código que recibiste por email.")
        try:
            session = self.identity.verify_one_time_code(email, code)
        except InvalidOrExpiredCodeError:
            log.info("Intake code rejected for %s", email)
            raise

        self.verified_email = session.email or email
        if self.on_verified is not None:
            self.on_verified(self.verified_email)
        return self.verified_email

    def change_email(self) -> None:
        self.step = STEP_EMAIL
        self.email = None
        self.verified_email = None
