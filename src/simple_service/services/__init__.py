"""Service layer — units built on ServiceBase.

Services may import from domain and config layers.
"""
