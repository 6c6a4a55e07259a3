"""Command-line entry points for the fake SBS-1 feed."""
