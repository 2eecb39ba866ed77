from decimal import Decimal

TAX_RATE = Decimal("0.08")  # 8%
FREE_SHIPPING_THRESHOLD = Decimal("100.00")
STANDARD_SHIPPING_RATE = Decimal("9.99")
DEFAULT_CURRENCY = "USD"

ORDER_NUMBER_PREFIX = "ORD"
ORDER_NUMBER_MAX_ATTEMPTS = 5
