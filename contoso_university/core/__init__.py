"""
Core application utilities: settings, logging and error types.

This package provides:
- Application settings loaded from appsettings.json and the environment
- Structured logging with request correlation ids
- ConfigurationError, raised for fatal configuration problems
"""
