"""Clinic portal web front end."""
