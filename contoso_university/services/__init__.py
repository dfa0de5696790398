"""
Application services: the explicit service registry and per-request scopes.
"""
