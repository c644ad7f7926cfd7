"""Sample record types and bundled CSV data."""
