"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for the school entities. They work
on the SchoolContext session of the current service scope.
"""
