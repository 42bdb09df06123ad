"""Core settings, models, exceptions and question catalogue."""
