"""Sandboxed note workspace: filesystem bridge, directory tree and tabs."""

__version__ = "0.1.0"
