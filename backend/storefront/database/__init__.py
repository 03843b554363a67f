"""Database package."""

from storefront.database.mongodb import MongoDB, duplicate_key_field, to_object_id

__all__ = [
    "MongoDB",
    "duplicate_key_field",
    "to_object_id",
]
