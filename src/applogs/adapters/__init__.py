"""Adapters connecting the core to storage, logging and HTTP frameworks."""
