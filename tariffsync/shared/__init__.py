"""Shared building blocks used across feature slices."""
