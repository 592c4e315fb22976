"""Reminder engine services."""
