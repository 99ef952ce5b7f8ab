"""
Parcel Status Enumeration.
"""

import enum


class ParcelStatus(str, enum.Enum):
    """
    Parcel status enumeration.

    Status flow:
        GOOD → GOOD | DAMAGED | DESTROYED
        DAMAGED → DAMAGED | DESTROYED  (a damaged parcel cannot be repaired)
        DESTROYED → (terminal, no transitions)
    """
    GOOD = "GOOD"
    DAMAGED = "DAMAGED"
    DESTROYED = "DESTROYED"
