"""
Identity roles enumeration.

Defines the role types an enrolled identity can hold on the postal network.
"""

import enum


class IdentityRole(str, enum.Enum):
    """
    Identity role enumeration.

    Roles:
        ADMIN: Registrar identity, the only role allowed to register others
        EMPLOYEE: Postal employee (carries postalEmployee=true)
        CLIENT: Regular network client
    """
    ADMIN = "admin"
    EMPLOYEE = "employee"
    CLIENT = "client"
