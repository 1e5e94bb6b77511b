"""kubescaffold -- scaffold dispatch and merge-update engine for Kubernetes API projects."""

__version__ = "0.1.0"
