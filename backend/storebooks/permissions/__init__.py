# Overview: Page-access definitions package.
# Re-exports the public APIs used by services.

from .pages import PAGE_DEFINITIONS
from .roles import DEFAULT_SYSTEM_ROLES, DEFAULT_ROLE_PAGE_ACCESS
from .helpers import validate_page_key, flags_for_access_level

__all__ = [
    "PAGE_DEFINITIONS",
    "DEFAULT_SYSTEM_ROLES",
    "DEFAULT_ROLE_PAGE_ACCESS",
    "validate_page_key",
    "flags_for_access_level",
]
