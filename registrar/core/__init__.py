"""Settings, security, logging and request-scoped dependencies."""
