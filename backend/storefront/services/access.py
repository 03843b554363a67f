"""Order access policy.

Every read or mutation of an order goes through these checks. Ownership is
compared on ids resolved by ``owner_id`` on both sides, never on raw
references.
"""

from dataclasses import dataclass
from typing import Any, Optional

from storefront.errors import Forbidden, InvalidCancellationState
from storefront.models.order import OrderInDB, OrderStatus, owner_id
from storefront.models.user import UserInDB
from storefront.services.lifecycle import CANCELLABLE_STATUSES


@dataclass(frozen=True)
class Caller:
    """The identity a request acts as."""

    userId: Optional[str]
    isAdmin: bool = False

    @classmethod
    def from_user(cls, user: Optional[UserInDB]) -> "Caller":
        if user is None:
            return ANONYMOUS
        return cls(userId=owner_id(user.userId), isAdmin=user.is_admin)

    @property
    def is_authenticated(self) -> bool:
        return self.userId is not None


ANONYMOUS = Caller(userId=None, isAdmin=False)


def is_owner(order: OrderInDB, caller: Caller) -> bool:
    order_owner = owner_id(order.user)
    caller_id = owner_id(caller.userId)
    return order_owner is not None and caller_id is not None and order_owner == caller_id


def is_guest_order(order: OrderInDB) -> bool:
    return owner_id(order.user) is None


def can_read(order: OrderInDB, caller: Caller) -> bool:
    """Admins, the owner, or anyone holding a guest order's reference."""
    return caller.isAdmin or is_owner(order, caller) or is_guest_order(order)


def can_update_status(caller: Caller) -> bool:
    return caller.isAdmin


def can_modify(order: OrderInDB, caller: Caller) -> bool:
    """Owner or admin; guest orders are only modifiable by admins."""
    return caller.isAdmin or is_owner(order, caller)


def can_cancel(order: OrderInDB, caller: Caller) -> bool:
    return can_modify(order, caller) and OrderStatus(order.status) in CANCELLABLE_STATUSES


def ensure_can_read(order: OrderInDB, caller: Caller) -> None:
    if not can_read(order, caller):
        raise Forbidden("You do not have permission to view this order")


def ensure_can_update_status(caller: Caller) -> None:
    if not can_update_status(caller):
        raise Forbidden("Only administrators can update order status")


def ensure_can_modify(order: OrderInDB, caller: Caller) -> None:
    if not can_modify(order, caller):
        raise Forbidden("You do not have permission to modify this order")


def ensure_can_cancel(order: OrderInDB, caller: Caller) -> None:
    """Check ownership first, then that the order is still cancellable."""
    if not can_modify(order, caller):
        raise Forbidden("You do not have permission to cancel this order")
    if OrderStatus(order.status) not in CANCELLABLE_STATUSES:
        raise InvalidCancellationState(order.orderNumber, OrderStatus(order.status).value)


def ensure_admin(caller: Caller, action: str = "perform this action") -> None:
    if not caller.isAdmin:
        raise Forbidden(f"Only administrators can {action}")


def scope_user_id(caller: Caller, requested: Any = None) -> Optional[str]:
    """User id a listing must be restricted to, or None for an unscoped admin listing."""
    if caller.isAdmin:
        return owner_id(requested)
    if not caller.is_authenticated:
        raise Forbidden("Sign in to list orders")
    return owner_id(caller.userId)
