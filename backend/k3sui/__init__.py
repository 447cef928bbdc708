"""Backend for the k3s/k3d cluster dashboard."""

__version__ = "1.0.0"
