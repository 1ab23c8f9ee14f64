"""
Book catalog package.

This package contains:
- Book record models and partial-update handling
- Book CRUD over the JSON record store
- The service facade used by the HTTP API and the admin CLI
"""

__version__ = "1.0.0"
