from enum import Enum


class InventoryType(str, Enum):
    BIRD = "bird"
    FEED = "feed"


class StockType(str, Enum):
    OPENING = "opening"
    PURCHASE = "purchase"
    SALE = "sale"
    RECEIPT = "receipt"
    MORTALITY = "mortality"
    WEIGHT_LOSS = "weight_loss"
    NATURAL_WEIGHT_LOSS = "natural_weight_loss"
    CONSUME = "consume"


class RecordSource(str, Enum):
    MANUAL = "manual"
    TRIP = "trip"


STOCK_MANAGER_ROLES = ("admin", "superadmin")
SUPERVISOR_ROLE = "supervisor"
MANAGE_STOCK_PERMISSION = "manage_stock"

DEFAULT_NATURAL_LOSS_WARN_RATIO = 0.05
