"""Grading and progress engines."""
