"""FastAPI application and REST API endpoints.

This module contains:
- Application factory and lifespan
- Authentication and profile endpoints
- Story generation endpoints
"""
