"""
kce - Kubeconfig editing engine

Manages a kubeconfig document (contexts, clusters, users bound by name),
with draft editing, referential diagnostics, selective import/merge and a
content-addressed version history enabling rollback.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
