"""
Shop Pricing Package

Unit price resolution for a print-shop catalog: promotions, quantity tiers,
manual prices and a cost-based suggested price, behind a small data-store API.
"""

__version__ = "1.0.0"
