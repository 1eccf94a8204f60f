from __future__ import annotations

import logging

from ..common.validators import require_pin
from ..core.exceptions import AuthenticationError
from .model import SessionUser
from .pin_verifier import PinVerifier

logger = logging.getLogger(__name__)


class AuthService:
    """Use case: log in with a 4-digit PIN."""

    def __init__(self, verifier: PinVerifier):
        self._verifier = verifier

    def login(self, pin: str) -> SessionUser:
        pin = require_pin(pin)
        try:
            return self._verifier.verify(pin)
        except AuthenticationError as e:
            logger.info("login rejected: %s", e)
            raise
