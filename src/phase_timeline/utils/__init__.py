"""Utility helpers for Phase Timeline."""
