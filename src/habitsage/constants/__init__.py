"""Static catalog data."""
