"""Background search provider service for a shell launcher."""
