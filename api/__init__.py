"""
API Module for the Support Chat backend.

FastAPI application with routes for:
- Sending chat messages
- Conversation history
- Message reactions
"""

from .main import create_app, app

__all__ = ["create_app", "app"]
