"""MongoDB database connection and operations."""

import asyncio
import logging
from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from storefront.config import Settings, get_settings
from storefront.errors import ConcurrentUpdate, DuplicateOrderNumber, OrderNotFound
from storefront.models.order import OrderInDB, OrderStatus
from storefront.models.user import UserCreate, UserInDB
from storefront.utils.helpers import utcnow

logger = logging.getLogger(__name__)

REVENUE_STATUSES = [
    OrderStatus.CONFIRMED.value,
    OrderStatus.PROCESSING.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
]

PAYMENT_INTENT_KEY = "payment.paymentIntentId"


def to_object_id(order_id: str) -> Optional[ObjectId]:
    """Parse an order id, returning None when it is not a valid ObjectId."""
    if isinstance(order_id, ObjectId):
        return order_id
    if order_id and ObjectId.is_valid(order_id):
        return ObjectId(order_id)
    return None


def duplicate_key_field(error: DuplicateKeyError) -> Optional[str]:
    """Name of the indexed field that caused a duplicate key error, if reported."""
    key_pattern = (error.details or {}).get("keyPattern") or {}
    if key_pattern:
        return next(iter(key_pattern))
    message = str(error)
    if "paymentIntentId" in message:
        return PAYMENT_INTENT_KEY
    if "orderNumber" in message:
        return "orderNumber"
    return None


class MongoDB:
    """MongoDB connection manager and order/user persistence."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize MongoDB connection."""
        self.settings = settings or get_settings()
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> None:
        """Connect to MongoDB."""
        try:
            self.client = AsyncIOMotorClient(
                self.settings.mongodb_url,
                maxPoolSize=self.settings.mongodb_max_pool_size,
                minPoolSize=self.settings.mongodb_min_pool_size,
                tz_aware=True,
            )
            self.db = self.client[self.settings.mongodb_database]

            # Test connection
            await self.client.admin.command("ping")
            logger.info("Connected to MongoDB: %s", self.settings.mongodb_database)

            await self.create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB: %s", e)
            raise

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    @property
    def is_connected(self) -> bool:
        return self.db is not None

    def _collection(self, name: str) -> AsyncIOMotorCollection:
        if self.db is None:
            raise ConnectionError("Database not connected")
        return self.db[name]

    @property
    def users(self) -> AsyncIOMotorCollection:
        return self._collection(self.settings.mongodb_user_collection)

    @property
    def orders(self) -> AsyncIOMotorCollection:
        return self._collection(self.settings.mongodb_order_collection)

    async def create_indexes(self) -> None:
        """Create database indexes."""
        await self.users.create_index("userId", unique=True, name="userId_unique")
        await self.users.create_index("email", name="email_index")

        await self.orders.create_index("orderNumber", unique=True, name="orderNumber_unique")
        await self.orders.create_index(
            PAYMENT_INTENT_KEY,
            unique=True,
            partialFilterExpression={PAYMENT_INTENT_KEY: {"$type": "string"}},
            name="paymentIntentId_unique",
        )
        await self.orders.create_index("user", name="user_index")
        await self.orders.create_index("status", name="status_index")
        await self.orders.create_index("payment.status", name="payment_status_index")
        await self.orders.create_index([("createdAt", DESCENDING)], name="createdAt_desc")
        await self.orders.create_index("customer.email", name="customer_email_index")
        logger.info("MongoDB indexes created")

    # Users

    async def create_user(self, user: UserCreate) -> UserInDB:
        """Create a new user."""
        try:
            user_data = user.model_dump()
            user_data["createdAt"] = utcnow()
            user_data["updatedAt"] = utcnow()

            result = await self.users.insert_one(user_data)

            if result.inserted_id:
                created_user = await self.get_user(user.userId)
                if created_user:
                    return created_user

            raise ValueError("Failed to create user")

        except DuplicateKeyError:
            raise ValueError(f"User with userId '{user.userId}' already exists")

    async def get_user(self, user_id: str) -> Optional[UserInDB]:
        """Get user by ID."""
        user_data = await self.users.find_one({"userId": user_id}, {"_id": 0})

        if user_data:
            return UserInDB(**user_data)
        return None

    # Orders

    async def insert_order(self, order: OrderInDB) -> OrderInDB:
        """Insert a new order and return it with its id.

        Raises:
            DuplicateOrderNumber: if the order number is already taken.
            DuplicateKeyError: if another order already holds the payment intent.
        """
        try:
            result = await self.orders.insert_one(order.to_document())
        except DuplicateKeyError as e:
            field = duplicate_key_field(e)
            if field is None:
                field = await self._colliding_field(order)
            if field == PAYMENT_INTENT_KEY:
                raise
            raise DuplicateOrderNumber(order.orderNumber or "") from e

        created = order.model_copy()
        created.id = str(result.inserted_id)
        logger.info("Order %s stored with id %s", created.orderNumber, created.id)
        return created

    async def _colliding_field(self, order: OrderInDB) -> str:
        # Servers that omit keyPattern: look for the payment intent holder
        intent_id = order.payment.paymentIntentId
        if intent_id and await self.orders.find_one({PAYMENT_INTENT_KEY: intent_id}, {"_id": 1}):
            return PAYMENT_INTENT_KEY
        return "orderNumber"

    async def get_order(self, order_id: str) -> Optional[OrderInDB]:
        """Get order by id; malformed ids are treated as missing."""
        oid = to_object_id(order_id)
        if oid is None:
            return None
        document = await self.orders.find_one({"_id": oid})
        return OrderInDB.from_document(document) if document else None

    async def get_order_by_number(self, order_number: str) -> Optional[OrderInDB]:
        document = await self.orders.find_one({"orderNumber": order_number})
        return OrderInDB.from_document(document) if document else None

    async def get_order_by_payment_intent(self, payment_intent_id: str) -> Optional[OrderInDB]:
        document = await self.orders.find_one({PAYMENT_INTENT_KEY: payment_intent_id})
        return OrderInDB.from_document(document) if document else None

    async def apply_status_change(
        self, order_id: str, expected_status: str, updated: OrderInDB
    ) -> OrderInDB:
        """Persist a lifecycle transition as one atomic document update.

        The update only matches while the stored status still equals
        ``expected_status``, so two racing transitions cannot both append a
        timeline entry.

        Raises:
            OrderNotFound: if the order no longer exists.
            ConcurrentUpdate: if the status changed since it was read.
        """
        oid = to_object_id(order_id)
        if oid is None:
            raise OrderNotFound(order_id)

        document = await self.orders.find_one_and_update(
            {"_id": oid, "status": expected_status},
            {
                "$set": {
                    "status": updated.status,
                    "payment": updated.payment.model_dump(),
                    "tracking": updated.tracking.model_dump() if updated.tracking else None,
                    "updatedAt": updated.updatedAt,
                },
                "$push": {"timeline": updated.timeline[-1].model_dump()},
            },
            return_document=ReturnDocument.AFTER,
        )
        if document is None:
            if await self.orders.find_one({"_id": oid}, {"_id": 1}):
                raise ConcurrentUpdate(order_id)
            raise OrderNotFound(order_id)
        return OrderInDB.from_document(document)

    async def update_notes(self, order_id: str, notes: str) -> OrderInDB:
        """Direct edit of the notes field."""
        oid = to_object_id(order_id)
        document = None
        if oid is not None:
            document = await self.orders.find_one_and_update(
                {"_id": oid},
                {"$set": {"notes": notes, "updatedAt": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        if document is None:
            raise OrderNotFound(order_id)
        return OrderInDB.from_document(document)

    async def list_orders(
        self,
        filters: dict[str, Any],
        sort: list[tuple[str, int]],
        skip: int,
        limit: int,
    ) -> tuple[list[OrderInDB], int]:
        """Return one page of orders matching ``filters`` and the total match count."""
        cursor = self.orders.find(filters).sort(sort).skip(skip).limit(limit)
        documents, total = await asyncio.gather(
            cursor.to_list(length=limit),
            self.orders.count_documents(filters),
        )
        return [OrderInDB.from_document(doc) for doc in documents], total

    async def order_stats(self) -> dict[str, Any]:
        """Counts and amounts per status, plus revenue over paid statuses."""
        by_status, total_orders, revenue = await asyncio.gather(
            self.orders.aggregate(
                [
                    {
                        "$group": {
                            "_id": "$status",
                            "count": {"$sum": 1},
                            "totalAmount": {"$sum": "$pricing.total"},
                        }
                    },
                    {"$sort": {"_id": ASCENDING}},
                ]
            ).to_list(length=None),
            self.orders.count_documents({}),
            self.orders.aggregate(
                [
                    {"$match": {"status": {"$in": REVENUE_STATUSES}}},
                    {"$group": {"_id": None, "total": {"$sum": "$pricing.total"}}},
                ]
            ).to_list(length=None),
        )
        return {
            "totalOrders": total_orders,
            "totalRevenue": revenue[0]["total"] if revenue else 0,
            "byStatus": [
                {"status": row["_id"], "count": row["count"], "totalAmount": row["totalAmount"]}
                for row in by_status
            ],
        }
