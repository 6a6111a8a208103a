"""
Command line tools for the Safe signing SDK.
"""
from .main import app

__all__ = ["app"]
