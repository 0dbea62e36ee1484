"""
Infrastructure Layer - Technical implementations of domain ports.

This layer contains:
- persistence/: Database implementations (Prisma repositories)
- identity/: Privileged handle/account gateways (+ Redis cache decorator)
- storage/: Blob stores for chat images (local disk, Supabase Storage)
- cache/: Redis client and change feed

Subpackages are imported directly; importing this package loads none of them.
"""
