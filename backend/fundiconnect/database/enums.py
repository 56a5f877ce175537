"""
backend/fundiconnect/database/enums.py

Enumerations

Defines enumerations shared across the platform:
- UserRole: Roles assigned to users (Client, Provider, Admin)
"""

from enum import Enum

# ---------------------------------------------------
# User Role Enumeration
# ---------------------------------------------------


class UserRole(str, Enum):
    """
    Enum representing user roles for access control.

    Values:
    - CLIENT
    - PROVIDER
    - ADMIN
    """

    CLIENT = "CLIENT"
    PROVIDER = "PROVIDER"
    ADMIN = "ADMIN"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Persist enum *values* (e.g. 'pending_quotes') instead of member names."""
    return [member.value for member in enum_cls]
