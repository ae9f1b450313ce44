"""Provider directory search."""
