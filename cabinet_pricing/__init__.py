"""Pricing, discount stacking and purchase-flow planning for the subscriber cabinet."""

__version__ = "1.0.0"
