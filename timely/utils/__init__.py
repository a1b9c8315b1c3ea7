"""Shared helpers used across timely packages."""
