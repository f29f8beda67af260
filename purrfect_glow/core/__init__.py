"""
Core package for shared utilities.

Configuration, structured logging, the checkout error hierarchy and the
request rate limiter live here and are imported by every other layer.
"""
