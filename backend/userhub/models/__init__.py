"""Models — in-memory records held by storage."""
