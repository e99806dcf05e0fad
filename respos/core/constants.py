from __future__ import annotations

# Roles
SUPER_ADMIN_ROLE_ID = 1
OUTLET_MANAGER_ROLE_ID = 2
WAITER_ROLE_ID = 3
KITCHEN_MANAGER_ROLE_ID = 4
INVENTORY_MANAGER_ROLE_ID = 5
CUSTOMER_ROLE_ID = 7

ASSIGNABLE_ROLES = [
    {"id": OUTLET_MANAGER_ROLE_ID, "name": "Outlet Manager"},
    {"id": WAITER_ROLE_ID, "name": "Waiter"},
    {"id": KITCHEN_MANAGER_ROLE_ID, "name": "Kitchen Manager"},
    {"id": INVENTORY_MANAGER_ROLE_ID, "name": "Inventory Manager"},
]

# Status codes accepted by the user filter. Anything else is ignored there.
PROFILE_STATUSES = frozenset({8, 9, 10, 11})
ACCOUNT_STATUSES = frozenset({1, 2})

BCRYPT_HASH_PREFIXES = ("$2a$", "$2b$", "$2y$")

DEFAULT_ADDRESS_TYPE = 1

CUSTOMER_MOBILE_MIN_DIGITS = 4
CUSTOMER_MOBILE_SEARCH_LIMIT = 10

ORGANIZATION_MAX_PAGE_SIZE = 100
ORGANIZATION_SORT_FIELDS = ("orgname", "createddate")
