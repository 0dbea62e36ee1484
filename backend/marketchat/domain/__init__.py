"""
DOMAIN LAYER - The Heart of the Messaging Core

This layer contains:
- Entities: Business objects with identity (Conversation, Message, Account)
- Value Objects: Immutable types (AccountId, Handle, ConversationId)
- Ports: Interfaces/abstractions that infrastructure implements
- Exceptions: Domain-specific errors

RULES:
1. NO framework imports (no FastAPI, Prisma, Pydantic, etc.)
2. NO I/O operations (no database, no HTTP, no file system)
3. Only depends on Python stdlib
"""
