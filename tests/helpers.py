"""Hosts and small assertions shared by the test modules."""

AUTH = "auth.test"
PRODUCT = "product.test"
ORDER = "order.test"
CATEGORY = "category.test"
COUPON = "coupon.test"

TOKEN = "token-123"

def error_codes(result) -> list:
    return [error.extensions.get("code") for error in result.errors or []]
