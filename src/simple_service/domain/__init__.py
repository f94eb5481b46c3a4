"""Domain layer — error entries, exceptions, and validation rules.

This layer depends only on stdlib, pydantic and the config layer.
It must never import from services.
"""
