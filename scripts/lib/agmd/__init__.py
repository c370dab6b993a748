"""Scheduled to-dos embedded in markdown task lists."""
