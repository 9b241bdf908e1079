"""App package initializer for the map data proxy service.

This package serves the static data artifacts of the Tor relay map
(relay snapshots, country aggregates, the index document) to browsers.
Each request is answered from a shared edge cache when possible and
otherwise from the first object store, in configured order, that holds
the artifact.

- Ordered fallback over DigitalOcean Spaces (HTTP) and Cloudflare R2
  (S3 API), filtered to the backends that are configured
- Uniform response headers for media type, cache policy, origin backend
  and CORS, whatever backend produced the bytes
- Successful responses are cached after being sent; misses never are
- Designed for FastAPI dependency injection and testability with
  in-memory backends and caches

See README and module sub-docstrings for details on architecture and usage.
"""
