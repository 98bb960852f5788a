"""Command line interface for dailyborg."""
