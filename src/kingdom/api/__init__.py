"""HTTP surface over the kingdom services."""
