"""Ioo rewards: badges, activity streaks and celebration scheduling."""

__version__ = "0.1.0"
