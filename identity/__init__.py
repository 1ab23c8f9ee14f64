"""
Identity package for the book catalog.

This package contains:
- Credential vault (users collection, bcrypt password hashes)
- Bearer token issuance and verification
- Ownership checks for book mutations
"""
