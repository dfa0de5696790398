"""
Contoso University: a university-records web application on FastAPI and SQLAlchemy.
"""

__version__ = "0.1.0"
