"""
Application bootstrapper: app factory, startup lifespan and API routes.
"""
