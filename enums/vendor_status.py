from enum import Enum


class VendorStatus(str, Enum):
    PENDING = "pending"        # Awaiting admin verification
    ACTIVE = "active"          # Verified and selling
    BLOCKED = "blocked"
    SUSPENDED = "suspended"    # Rejected at approval or suspended later
