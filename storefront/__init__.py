"""Storefront Query API - product search and recommendations."""

__version__ = "0.1.0"
