# Routes package init
"""
Portbook Backend - API Routes Package
=======================================

Route Inventory:
    - destinations.py:  /api/destinations/...      (token required)
    - health.py:        GET /health                (open)

Routes stay thin: they read the request, call DestinationService, and
pick the status code and envelope message. Aggregate rules live in
app.services.destination_service.
"""
