"""
Database package initialization.

The package follows a modular structure:
- base: declarative base and shared column mixins
- connection: async engine, session factory and FastAPI dependency
- models: ORM models for products, shipping rates and orders
- seed: default shipping rate table
"""

__all__ = []
