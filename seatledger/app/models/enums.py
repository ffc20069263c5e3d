"""
User roles enumeration.

Defines the role types for the SeatLedger system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        SUPERADMIN: Global operator; may read across all libraries
        MANAGER: Bound to exactly one library (default role)
    """
    SUPERADMIN = "SUPERADMIN"
    MANAGER = "MANAGER"
