"""Profiles, roles and permission checks."""
