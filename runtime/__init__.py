"""
Runtime package for the LogIngest server.

This package contains:
- API layer (FastAPI app factory, routes, middleware)
- Stores (the JSON snapshot log store)
- Models (Pydantic models for log entries, filters and HTTP envelopes)
"""
