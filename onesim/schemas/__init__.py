# Schemas package init
"""
OneSim Backend: Pydantic Schemas
================================

What:  API contracts between the frontend and this backend, kept separate
       from the ORM models so the wire format can differ from the columns.
"""
