"""FastAPI dependencies: service lookup and caller identification."""

from typing import Optional

from fastapi import Depends, Header, Request

from storefront.errors import Unauthorized
from storefront.services import Services
from storefront.services.access import Caller


def get_services(request: Request) -> Services:
    """Services built in the application lifespan."""
    return request.app.state.services


async def get_caller(
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    services: Services = Depends(get_services),
) -> Caller:
    """Caller named by the ``X-User-ID`` header, anonymous when absent."""
    return await services.users.resolve_caller(x_user_id)


async def require_caller(caller: Caller = Depends(get_caller)) -> Caller:
    """Like ``get_caller`` but rejects anonymous requests."""
    if not caller.is_authenticated:
        raise Unauthorized("Authentication required: send the X-User-ID header")
    return caller
