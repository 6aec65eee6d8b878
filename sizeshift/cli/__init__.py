"""CLI adapter for the Sizeshift core engine."""
