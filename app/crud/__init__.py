"""
CRUD operations (Create, Read, Update, Delete) for database models.

This layer provides a clean separation between the use-cases and database
operations, following the Repository pattern.
"""

from app.crud import user, email_verification, audit_log

__all__ = ["user", "email_verification", "audit_log"]
