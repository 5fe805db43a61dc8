"""ORM models. Importing this package registers every table on ``Base.metadata``."""

from .bean import CoffeeBean
from .brewing import BrewingLogEntry, BrewingScheduleEntry
from .cost import CostEntry
from .inventory import InventoryAdjustment, InventoryLot
from .tasting import TastingNote

__all__ = [
    "BrewingLogEntry",
    "BrewingScheduleEntry",
    "CoffeeBean",
    "CostEntry",
    "InventoryAdjustment",
    "InventoryLot",
    "TastingNote",
]
