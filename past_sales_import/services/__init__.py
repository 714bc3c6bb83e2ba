"""Validation, review, commit, aftercare and session services."""
