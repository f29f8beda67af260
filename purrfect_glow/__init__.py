"""Order placement and inventory reconciliation backend for The Purrfect Glow."""

__version__ = "1.0.0"
