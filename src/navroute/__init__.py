"""Delivery route optimization and navigation routing service."""

__version__ = "0.1.0"
