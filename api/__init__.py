"""
FastAPI RESTful API for the Book Catalog.

This module provides a REST API for:
- User registration and login
- Bearer token authentication
- Book catalog browsing, search and pagination
- Owner-only book updates and deletion
"""
