"""
API Routes for the Support Chat backend.
"""

from . import chat

__all__ = ["chat"]
