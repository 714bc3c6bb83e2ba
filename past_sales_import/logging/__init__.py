"""Labeled console logging and the JSON-lines error log."""
