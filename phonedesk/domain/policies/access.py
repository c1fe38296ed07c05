"""AccessPolicy — which dashboard modules a set of granular roles may open."""

from __future__ import annotations

ADMIN_ROLE = "admin"

STOCK_VIEWER = "stock-viewer"
SIMS_VIEWER = "sims-viewer"
REPORT_VIEWER = "report-viewer"

# Ordered: the first granted entry is the user's landing page.
ROLE_DEFAULT_ROUTES: tuple[tuple[str, str], ...] = (
    (STOCK_VIEWER, "/stock"),
    (SIMS_VIEWER, "/sims"),
    (REPORT_VIEWER, "/reports"),
)

_ALWAYS_ALLOWED_PREFIXES = ("/iam/pending",)


def first_allowed_path(role_names: list[str] | set[str]) -> str | None:
    roles = set(role_names)
    for role, href in ROLE_DEFAULT_ROUTES:
        if role in roles:
            return href
    return None


def can_access_path(path: str, role_names: list[str] | set[str]) -> bool:
    """Flat prefix lookup; anything not listed is restricted."""
    if path == "/" or path.startswith(_ALWAYS_ALLOWED_PREFIXES):
        return True

    roles = set(role_names)
    for role, href in ROLE_DEFAULT_ROUTES:
        if path == href or path.startswith(href + "/"):
            return role in roles
    return False
