# Overview: All UI page definitions organized by group.
# Each page is defined as: (page_key, page_name, page_group, route_path, icon_name, sort_order)

from .groups import PageGroup


# -- DASHBOARD --

DASHBOARD_PAGES = [
    ("dashboard", "Dashboard", PageGroup.DASHBOARD, "/dashboard", "home", 10),
    ("transactions", "Transactions", PageGroup.DASHBOARD, "/transactions", "repeat", 20),
]


# -- RECORDS --

RECORD_PAGES = [
    ("sales", "Sales", PageGroup.RECORDS, "/dashboard/sales", "trending-up", 10),
    ("purchases", "Purchases", PageGroup.RECORDS, "/dashboard/purchases", "shopping-cart", 20),
    ("expenses", "Expenses", PageGroup.RECORDS, "/dashboard/expenses", "credit-card", 30),
]


# -- REPORTS --

REPORT_PAGES = [
    ("reports", "Reports", PageGroup.REPORTS, "/dashboard/reports", "bar-chart", 10),
]


# -- ADMINISTRATION --

ADMINISTRATION_PAGES = [
    ("client_users", "Users", PageGroup.ADMINISTRATION, "/dashboard/users", "users", 10),
    ("admin_clients", "Clients", PageGroup.ADMINISTRATION, "/admin/clients", "briefcase", 20),
    ("admin_stores", "Stores", PageGroup.ADMINISTRATION, "/admin/stores", "map-pin", 30),
    ("admin_users", "All Users", PageGroup.ADMINISTRATION, "/admin/users", "user-check", 40),
]


PAGE_DEFINITIONS = (
    DASHBOARD_PAGES
    + RECORD_PAGES
    + REPORT_PAGES
    + ADMINISTRATION_PAGES
)
