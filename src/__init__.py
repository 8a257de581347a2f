"""
Baho ng Lahat - a community video sharing platform.

This package contains the complete application:
- core: Framework-agnostic business logic
- infrastructure: External service integrations
- api: FastAPI routes and dependencies
- config: Application configuration and startup wiring
"""

__version__ = "0.1.0"
