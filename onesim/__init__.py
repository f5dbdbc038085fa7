"""
OneSim Backend: Application Package
===================================

What: REST and WebSocket backend for the OneSimulation clinical-case
      training platform.

Architecture:
    ┌─────────────────────────────────────┐
    │   Routes (HTTP + WebSocket)         │  ← request/response shapes only
    ├─────────────────────────────────────┤
    │   Services                          │  ← validation, queries, hashing,
    │                                     │    broadcast, file relay
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database                          │  ← async engine, fixed pool
    └─────────────────────────────────────┘

    Process-scoped services (database, broadcaster, file relay, password
    hasher) are created in the application lifespan and reach handlers
    through FastAPI dependencies.
"""

__version__ = "1.0.0"
