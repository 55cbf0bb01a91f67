from enum import Enum


class ProductCategory(str, Enum):
    """
    Catalog categories shared by products and vendor business types.
    """

    GROCERY = "grocery"
    BAKERY = "bakery"
    DAIRY = "dairy"
    MEAT = "meat"
    FISH = "fish"
    PRODUCE = "produce"
    BEVERAGES = "beverages"
    SNACKS = "snacks"
    HOUSEHOLD = "household"
    PERSONAL_CARE = "personal-care"
    PHARMACY = "pharmacy"
    ELECTRONICS = "electronics"
    CLOTHING = "clothing"
    FOOTWEAR = "footwear"
    JEWELRY = "jewelry"
    HOME_DECOR = "home-decor"
    BOOKS = "books"
    SPORTS = "sports"
    AUTOMOTIVE = "automotive"
    PET_SUPPLIES = "pet-supplies"
    BABY_PRODUCTS = "baby-products"
    GARDEN = "garden"
    HARDWARE = "hardware"
    TEXTILES = "textiles"
    ART_CRAFTS = "art-crafts"
    MUSIC = "music"
    GIFTS = "gifts"
    ORGANIC = "organic"
    FROZEN_FOODS = "frozen-foods"
    IMPORTED_GOODS = "imported-goods"
    OTHER = "other"

    @classmethod
    def matching(cls, query: str) -> list['ProductCategory']:
        """Categories whose value contains the query (case-insensitive)."""
        needle = query.strip().lower()
        return [c for c in cls if needle in c.value]
