"""
DevOps Learning API: Application Package
========================================

What: HTTP service with health/status endpoints and CRUD over a User
      resource stored in MongoDB.

Architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, envelopes
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, error translation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← User record, response shapes
    ├─────────────────────────────────────┤
    │      Document Store (Persistence)   │  ← DocumentStore / MongoStore
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
