"""User service for business logic."""

import logging
from typing import Optional

from storefront.database.mongodb import MongoDB
from storefront.errors import Unauthorized
from storefront.models.user import UserCreate, UserInDB
from storefront.services.access import ANONYMOUS, Caller

logger = logging.getLogger(__name__)


class UserService:
    """User service for handling user-related operations."""

    def __init__(self, db: MongoDB) -> None:
        self.db = db

    async def create_user(self, user: UserCreate) -> UserInDB:
        """Create a new user."""
        try:
            return await self.db.create_user(user)
        except ValueError as e:
            logger.error("Error creating user: %s", e)
            raise

    async def get_user(self, user_id: str) -> Optional[UserInDB]:
        """Get user by ID."""
        return await self.db.get_user(user_id)

    async def resolve_caller(self, user_id: Optional[str]) -> Caller:
        """Identify the caller from a user id header value.

        No id means an anonymous caller; an unknown id is rejected.
        """
        if not user_id or not user_id.strip():
            return ANONYMOUS
        user = await self.get_user(user_id.strip())
        if user is None:
            logger.warning("Rejected request for unknown user %s", user_id)
            raise Unauthorized(f"Unknown user: {user_id}")
        return Caller.from_user(user)
