class ConfigurationError(RuntimeError):
    """Raised when application configuration is missing or malformed. Always fatal at startup."""
