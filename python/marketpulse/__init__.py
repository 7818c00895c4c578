"""Scheduled trading-signal and social-sentiment reporting bot."""

__version__ = "0.1.0"
