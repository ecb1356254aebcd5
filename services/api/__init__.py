"""
Backend API Service - FastAPI Application

Responsibilities:
- Expose RESTful endpoints for user data
- Enrich missing external links when users are listed
- Report partial enrichment through response headers

Endpoints:
- GET /users - List users (with best-effort external link enrichment)
- GET /users/{id} - Get user by ID
- GET /health - Health check

Usage:
    python -m services.api
"""
