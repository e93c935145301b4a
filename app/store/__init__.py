"""
DevOps Learning API: Document Store Package
===========================================

What:  The persistence seam between the services and the document database.

Inventory:
    - base.py:   DocumentStore (abstract contract) and ConnectionState
    - mongo.py:  MongoStore, the MongoDB implementation (PyMongo async client)
"""

from app.store.base import ConnectionState, DocumentStore
from app.store.mongo import MongoStore

__all__ = ["ConnectionState", "DocumentStore", "MongoStore"]
