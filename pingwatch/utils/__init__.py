"""Utility modules for pingwatch."""
