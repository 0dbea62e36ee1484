"""
Presentation Layer - the HTTP surface of the messaging core.

- api/:          routers for /me, /conversations and their messages
- dependencies/: bearer-token authentication (Account + session key)

Routes hold no chat state themselves; they look up the caller's ChatSession
in the ChatSessionRegistry and translate its results into DTOs.
"""
