"""Curling Sweeper: brush stroke counting and split time estimation."""

__version__ = "0.1.0"
