"""API router subpackage for the map data proxy.

Submodules:
    - data: Read-only endpoints serving data artifacts below ``/data``
      through the edge cache and the storage fallback chain.

Routers are grouped by major feature domain to promote clarity and
independent testing.
"""
