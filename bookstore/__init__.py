"""
FastAPI REST service for the Bookstore catalogue.

This package provides:
- Book CRUD endpoints backed by MongoDB
- Full-text search over title, authors and description
- Role-bearing JWT issuance and verification
"""

__version__ = "1.0.0"
