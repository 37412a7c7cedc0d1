# permissions/roles.py

from __future__ import annotations

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS
# =========================================================
# Stored on User.role. "user" is every storefront customer.
ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLE_USER = "user"

ALL_ROLES = {ROLE_ADMIN, ROLE_STAFF, ROLE_USER}

BACKOFFICE_ROLES = {ROLE_ADMIN, ROLE_STAFF}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views should protect capabilities, not raw roles.
CAP_CATALOG_EDIT = "catalog.edit"

CAP_ORDERS_VIEW = "orders.view"
CAP_ORDERS_MANAGE = "orders.manage"
CAP_ORDERS_REFUND = "orders.refund"

CAP_USERS_VIEW = "users.view"
CAP_USERS_MANAGE = "users.manage"       # ban, unban, roles

CAP_WALLET_ADJUST = "wallet.adjust"     # manual balance corrections

CAP_SUPPLIER_MANAGE = "supplier.manage"  # api configs, proxy, sync

CAP_SETTINGS_MANAGE = "settings.manage"

CAP_SECURITY_VIEW = "security.view"

CAP_EMAIL_SEND = "notifications.email"

CAP_REPORTS_VIEW = "reports.view"

ALL_CAPABILITIES = {
    CAP_CATALOG_EDIT,
    CAP_ORDERS_VIEW,
    CAP_ORDERS_MANAGE,
    CAP_ORDERS_REFUND,
    CAP_USERS_VIEW,
    CAP_USERS_MANAGE,
    CAP_WALLET_ADJUST,
    CAP_SUPPLIER_MANAGE,
    CAP_SETTINGS_MANAGE,
    CAP_SECURITY_VIEW,
    CAP_EMAIL_SEND,
    CAP_REPORTS_VIEW,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_STAFF: {
        CAP_CATALOG_EDIT,
        CAP_ORDERS_VIEW,
        CAP_ORDERS_MANAGE,
        CAP_USERS_VIEW,
        CAP_SECURITY_VIEW,
        CAP_EMAIL_SEND,
        CAP_REPORTS_VIEW,
        # no refunds, balance adjustments or supplier credentials
    },
    ROLE_USER: set(),
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> str | None:
    return getattr(user, "role", None)


def capabilities_for(user) -> set[str]:
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)
    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


def user_has_capability(user, capability: str) -> bool:
    if not user or not getattr(user, "is_authenticated", False):
        return False
    return capability in capabilities_for(user)


# =========================================================
# Base Role Permission (Internal Use)
# =========================================================
class BaseRolePermission(BasePermission):
    """
    Base permission for role-based access control.

    Subclasses must define:
    - allowed_roles (set)
    """

    allowed_roles: set[str] = set()

    def has_permission(self, request, view):
        user = request.user

        if not user or not user.is_authenticated:
            return False

        user_role = get_user_role(user)
        if not user_role:
            return False

        return user_role in self.allowed_roles


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_ORDERS_REFUND
    """

    def has_permission(self, request, view):
        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default when a view forgets to declare one
            return False

        return user_has_capability(request.user, required)


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a list.

    Usage:
        view.required_any_capabilities = {CAP_ORDERS_VIEW, CAP_REPORTS_VIEW}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = capabilities_for(user)
        return any(cap in caps for cap in set(required))


# =========================================================
# Role Permissions
# =========================================================
class IsAdmin(BaseRolePermission):
    allowed_roles = {ROLE_ADMIN}


class IsBackOffice(BaseRolePermission):
    allowed_roles = BACKOFFICE_ROLES
