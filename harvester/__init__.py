"""Structured Harvester - shared settings, logging and errors."""
