"""
Role based landing pages.
"""

from typing import Optional

LANDING_PATHS = {
    "owner": "/reports",
    "warehouse_manager": "/inventory",
    "salesman": "/dashboard/salesman",
    "shop": "/orders",
}
DEFAULT_LANDING_PATH = "/dashboard"


def landing_path_for_role(role: Optional[str]) -> str:
    return LANDING_PATHS.get(role or "", DEFAULT_LANDING_PATH)
