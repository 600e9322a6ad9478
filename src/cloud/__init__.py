"""Read-only AWS inventory lookups."""

from .inventory import AwsInventory, CloudInventoryError

__all__ = ["AwsInventory", "CloudInventoryError"]
