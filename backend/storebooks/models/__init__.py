from .tenancy import Client, Store
from .auth import User, ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_CLIENT_USER, USER_ROLES
from .ledger import Sale, Purchase, Expense, Transaction, PAYMENT_METHODS, TRANSACTION_TYPES
from .access import SystemRole, Page, RolePageAccess, UserRoleAssignment, RoleAuditLog, ACCESS_LEVELS, CAPABILITY_FLAGS
from .security import SecurityEvent

__all__ = [
    'Client', 'Store',
    'User', 'ROLE_SUPER_ADMIN', 'ROLE_ADMIN', 'ROLE_CLIENT_USER', 'USER_ROLES',
    'Sale', 'Purchase', 'Expense', 'Transaction', 'PAYMENT_METHODS', 'TRANSACTION_TYPES',
    'SystemRole', 'Page', 'RolePageAccess', 'UserRoleAssignment', 'RoleAuditLog',
    'ACCESS_LEVELS', 'CAPABILITY_FLAGS',
    'SecurityEvent',
]
