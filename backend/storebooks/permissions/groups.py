# Overview: Page group constants for grouping UI pages in the access matrix.


class PageGroup:
    """Page groups for organization and UI navigation."""
    DASHBOARD = "dashboard"
    RECORDS = "records"
    REPORTS = "reports"
    ADMINISTRATION = "administration"
