"""Versioned API (v1).

Import the aggregated router from the routers subpackage:

    from memberhub.api.v1.routers import router as api_v1_router
"""

# Note: avoid `routers = ...` here to prevent shadowing the `routers` package
# which breaks dotted-path resolution used by tests (monkeypatch, etc.).

__all__ = []
