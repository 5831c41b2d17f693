"""CLI module for roombot."""
