"""
ironbox: run untrusted code snippets in disposable, hardened containers.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
