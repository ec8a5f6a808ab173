# storefront settings; every value can be overridden from the environment
import os


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    return float(raw) if raw else default


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    return int(raw) if raw else default


DB_PATH = os.getenv("STOREFRONT_DB_PATH", "data/storefront.sqlite")

# pricing: shipping is waived only when the subtotal is strictly above the threshold
SHIPPING_THRESHOLD = _env_float("STOREFRONT_SHIPPING_THRESHOLD", 100.0)
SHIPPING_FEE = _env_float("STOREFRONT_SHIPPING_FEE", 10.0)
TAX_RATE = _env_float("STOREFRONT_TAX_RATE", 0.08)

DELIVERY_LEAD_DAYS = _env_int("STOREFRONT_DELIVERY_LEAD_DAYS", 10)
DEFAULT_COUNTRY = os.getenv("STOREFRONT_DEFAULT_COUNTRY", "USA")

ORDER_NUMBER_PREFIX = os.getenv("STOREFRONT_ORDER_PREFIX", "AR")
TICKET_NUMBER_PREFIX = os.getenv("STOREFRONT_TICKET_PREFIX", "SUP")

DEFAULT_PAGE_SIZE = _env_int("STOREFRONT_PAGE_SIZE", 10)

# DEBUG=1 forces debug output regardless of STOREFRONT_LOG_LEVEL
LOG_LEVEL = "DEBUG" if os.getenv("DEBUG") else os.getenv("STOREFRONT_LOG_LEVEL", "INFO")
