from enum import Enum


class DeliveryOption(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"
