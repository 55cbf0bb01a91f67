from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"            # Placed, waiting for the vendor
    CONFIRMED = "confirmed"        # Accepted by the vendor
    PROCESSING = "processing"      # Being packed
    SHIPPED = "shipped"            # Handed to the carrier
    DELIVERED = "delivered"        # Received by the customer (terminal)
    CANCELLED = "cancelled"        # Cancelled by customer, vendor or admin (terminal)
