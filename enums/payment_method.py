from enum import Enum


class PaymentMethod(str, Enum):
    """
    Payment methods accepted at checkout.

    Payment itself is handled by an external provider; only the chosen
    method is recorded on the order. Client aliases such as "credit_card"
    and "cash_on_delivery" are folded onto the canonical values by
    from_string().
    """

    COD = "cod"
    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"

    @classmethod
    def from_string(cls, value: str) -> 'PaymentMethod':
        """
        Convert string to PaymentMethod enum.

        Handles case-insensitive matching, whitespace and legacy aliases.

        Raises:
            ValueError: If value doesn't match any method or alias
        """
        normalized = value.strip().lower()
        normalized = _ALIASES.get(normalized, normalized)
        for method in cls:
            if method.value == normalized:
                return method
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Invalid payment method: '{value}'. Valid methods: {valid}")


_ALIASES = {
    "credit_card": "card",
    "debit_card": "card",
    "cash_on_delivery": "cod",
}
