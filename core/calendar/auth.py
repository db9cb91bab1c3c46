# SPDX-License-Identifier: Apache-2.0
"""
Current-user accessor passed to the calendar store.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from core.calendar.exceptions import UnauthenticatedError

logger = logging.getLogger("lexcal.calendar.auth")


@dataclass
class AuthContext:
    user_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    def require_user_id(self, operation: Optional[str] = None) -> str:
        """Return the signed-in user id or raise UnauthenticatedError."""
        if not self.user_id:
            raise UnauthenticatedError(operation)
        return self.user_id

    def sign_in(self, user_id: str):
        if not user_id:
            raise ValueError("user_id must not be empty")
        self.user_id = user_id
        logger.info(f"Signed in as {user_id}")

    def sign_out(self):
        if self.user_id:
            logger.info(f"Signed out {self.user_id}")
        self.user_id = None
