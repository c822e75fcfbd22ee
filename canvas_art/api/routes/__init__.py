"""
API Routes
==========

Routers mounted by the FastAPI application.
"""
