"""Role to capability mapping, checked once at the route boundary.

Services below the routes never look at roles; they receive an already
authorized user id.
"""

from enum import Enum

from fastapi import Depends, HTTPException, status

from storefront.models.user import User
from storefront.utils.token import get_current_user


class Role(str, Enum):
    customer = "customer"
    admin = "admin"


class Capability(str, Enum):
    place_orders = "place_orders"
    manage_orders = "manage_orders"
    manage_catalog = "manage_catalog"
    view_analytics = "view_analytics"


ROLE_CAPABILITIES = {
    Role.customer: {Capability.place_orders},
    Role.admin: {
        Capability.place_orders,
        Capability.manage_orders,
        Capability.manage_catalog,
        Capability.view_analytics,
    },
}


def capabilities_for(role: str) -> set:
    try:
        return ROLE_CAPABILITIES[Role(role)]
    except ValueError:
        return set()


def require_capability(capability: Capability):
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if capability not in capabilities_for(current_user.role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing capability: {capability.value}",
            )
        return current_user

    return dependency


require_customer = require_capability(Capability.place_orders)
require_order_admin = require_capability(Capability.manage_orders)
require_catalog_admin = require_capability(Capability.manage_catalog)
require_analytics = require_capability(Capability.view_analytics)
