"""TalosDeck - diagnostics and safe operations for Kubernetes on Talos."""

__version__ = "0.1.0"
