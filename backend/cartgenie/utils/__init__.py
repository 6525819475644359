"""Utilities - authentication helpers."""
