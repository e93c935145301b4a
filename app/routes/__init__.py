# Routes package init
"""
DevOps Learning API: Routes Package
===================================

Route Inventory:
    - health.py:  GET /, GET /health, GET /api/hello
    - stats.py:   GET /api/stats
    - users.py:   GET/POST /api/users, GET/PUT/DELETE /api/users/{id}

Routes stay thin: read the request, call a service, wrap the result in a
response model. Anything that fails is raised and rendered by the
exception handlers registered in main.py.
"""
