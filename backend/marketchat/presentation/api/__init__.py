"""
API Routers - FastAPI endpoint definitions.
"""

from marketchat.presentation.api.conversations import router as conversations_router
from marketchat.presentation.api.chat import router as chat_router
from marketchat.presentation.api.identity import router as identity_router

__all__ = [
    "conversations_router",
    "chat_router",
    "identity_router",
]
