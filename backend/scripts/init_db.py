"""Database initialization script.

Creates the indexes (including the unique order number index) and seeds
sample accounts.

Usage:
    python -m scripts.init_db
"""

import asyncio
import logging

from storefront.config import get_settings
from storefront.database.mongodb import MongoDB
from storefront.models.user import UserCreate, UserRole
from storefront.services.user_service import UserService
from storefront.utils.logger import setup_logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    UserCreate(
        userId="admin_001",
        firstName="Store",
        lastName="Admin",
        email="admin@example.com",
        phone="+1234567800",
        role=UserRole.ADMIN,
    ),
    UserCreate(
        userId="user_001",
        firstName="Kai",
        lastName="He",
        email="kai.he@example.com",
        phone="+1234567890",
    ),
    UserCreate(
        userId="user_002",
        firstName="Jane",
        lastName="Smith",
        email="jane.smith@example.com",
        phone="+1234567891",
    ),
]


async def init_database():
    """Initialize the database and create sample users."""
    db = MongoDB(get_settings())
    try:
        logger.info("Initializing database...")

        # connect() also creates the indexes
        await db.connect()
        users = UserService(db)

        for user in SAMPLE_USERS:
            try:
                await users.create_user(user)
                logger.info("Created user: %s (%s)", user.userId, user.role)
            except ValueError as e:
                logger.warning("User %s already exists: %s", user.userId, e)

        logger.info("Database initialization completed successfully")

    except Exception as e:
        logger.error("Error initializing database: %s", e)
        raise

    finally:
        await db.disconnect()


if __name__ == "__main__":
    asyncio.run(init_database())
