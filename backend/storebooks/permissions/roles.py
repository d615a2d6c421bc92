# Overview: Default page access for the built-in system roles.

from .pages import PAGE_DEFINITIONS


# Default system roles: (name, role_type, description)
DEFAULT_SYSTEM_ROLES = [
    ("super_admin", "super_admin", "Full access to every client and page"),
    ("admin", "admin", "Manages stores, users, and records for one client"),
    ("client_user", "client_user", "Records sales, purchases, and expenses"),
]


_ALL_PAGES = [page[0] for page in PAGE_DEFINITIONS]

# role name -> {page_key: access_level}; pages not listed get no row
DEFAULT_ROLE_PAGE_ACCESS = {
    "super_admin": {page_key: "full" for page_key in _ALL_PAGES},
    "admin": {
        "dashboard": "full",
        "transactions": "full",
        "sales": "full",
        "purchases": "full",
        "expenses": "full",
        "reports": "full",
        "client_users": "full",
        "admin_stores": "write",
    },
    "client_user": {
        "dashboard": "read",
        "transactions": "write",
        "sales": "write",
        "purchases": "write",
        "expenses": "write",
        "reports": "read",
    },
}
