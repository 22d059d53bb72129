# Services package init
"""
Portbook Backend - Services Layer
===================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Services take a session plus validated request schemas, apply the
       aggregate rules, and return response schemas.

Service Inventory:
    - DestinationService: destination / shipping-line aggregate operations
"""
