"""
Access Service
Single shared-secret gate for the board dashboard.
"""

import hmac
import logging
from typing import Optional

from .config_service import ConfigService


logger = logging.getLogger(__name__)


class AccessService:
    """Service for the board passcode check."""

    @staticmethod
    def verify_passcode(candidate: object, expected: Optional[str] = None) -> bool:
        """
        Compare a passcode in constant time.

        An unconfigured passcode denies every attempt.

        Args:
            candidate: Passcode typed by the user
            expected: Override for the configured passcode

        Returns:
            True when the passcode matches
        """
        expected = expected if expected is not None else ConfigService.get_board_passcode()
        if not expected:
            logger.warning("Board passcode is not configured; access denied")
            return False
        if not isinstance(candidate, str):
            return False
        return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))
