# Services package init
"""
DevOps Learning API: Services Layer
===================================

What:  Business logic between the routes (HTTP) and the document store.
How:   Services receive a DocumentStore at construction and raise app
       exceptions; routes turn results into response envelopes.

Service Inventory:
    - UserService:    Create / ListAll / GetById / UpdateById / DeleteById
    - StatusService:  health, service info, hello, store stats
"""
