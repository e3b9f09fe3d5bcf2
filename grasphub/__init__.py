"""Stored-grasp lookup for recognized objects."""

__version__ = "0.1.0"
