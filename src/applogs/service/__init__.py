"""Coordinators, registry and in-process client."""
