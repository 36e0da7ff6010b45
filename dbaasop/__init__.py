"""Models, admission validation and reconciliation rules for database-as-a-service resources."""

__version__ = "0.4.0"

__all__ = ["meta", "types", "resources", "webhooks", "reconciler"]