"""Portfolio profile API backend."""
