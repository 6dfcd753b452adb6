"""Storefront checkout settlement: shipping, payments, orders."""

__version__ = "0.1.0"
