"""Storage backend adapters and fetch result models.

This package holds the object-store adapters the proxy reads from and the
value types they return. It provides a stable import location for the
backend registry used by the fallback chain, supporting production
(R2, Spaces) and testing (in-memory) backends.

Example:
    Use in a service or FastAPI lifespan:
        >>> from data_proxy.storage import backends
        >>> registry = backends.build_backends(settings, http_client)
"""
