"""Domain models, validation and ports."""
