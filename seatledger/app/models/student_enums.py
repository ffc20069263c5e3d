"""
Student status enumeration.
"""

import enum


class StudentStatus(str, enum.Enum):
    """
    Derived student status.

    Never stored: computed from the deactivation flag and the balance.
    """
    ENROLLED = "enrolled"
    OWING = "owing"
    INACTIVE = "inactive"
