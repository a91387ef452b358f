"""
Role Constants

Role names used by the admin gate and the permission dependencies.
"""

from enum import Enum


class RoleName(str, Enum):
    """Enumeration of role names in the system."""

    USER = "user"
    ADMIN = "admin"


# Default role for new user registrations
DEFAULT_ROLE = RoleName.USER

# Roles allowed through the admin gate
ADMIN_ROLES = (RoleName.ADMIN.value,)

DEFAULT_ROLES = {
    RoleName.USER: "Reader; can comment, like and save posts",
    RoleName.ADMIN: "Full access to the admin dashboard",
}
