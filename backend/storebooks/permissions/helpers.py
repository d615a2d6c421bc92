# Overview: Page-key lookups and access-level flags.

from .pages import PAGE_DEFINITIONS


# access_level -> capability flags it implies
ACCESS_LEVEL_FLAGS = {
    "none": {},
    "read": {"can_read": True, "can_export": True},
    "write": {"can_create": True, "can_read": True, "can_update": True, "can_export": True},
    "full": {
        "can_create": True,
        "can_read": True,
        "can_update": True,
        "can_delete": True,
        "can_export": True,
        "can_import": True,
    },
}

PAGE_KEYS = frozenset(page[0] for page in PAGE_DEFINITIONS)


def validate_page_key(page_key):
    """Check if a page key is valid."""
    return isinstance(page_key, str) and page_key in PAGE_KEYS


def flags_for_access_level(access_level):
    """Capability flags implied by an access level (all False for none)."""
    flags = ACCESS_LEVEL_FLAGS[access_level]
    return {
        "can_create": flags.get("can_create", False),
        "can_read": flags.get("can_read", False),
        "can_update": flags.get("can_update", False),
        "can_delete": flags.get("can_delete", False),
        "can_export": flags.get("can_export", False),
        "can_import": flags.get("can_import", False),
    }
