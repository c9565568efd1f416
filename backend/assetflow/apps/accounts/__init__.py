# backend/assetflow/apps/accounts/__init__.py
"""
Accounts app

Responsible for:
- User accounts and their dashboard role
- Password login and bearer token issue

Other apps depend on these models for "who is allowed to do what".
"""

from . import models, schemas  # noqa: F401

__all__ = ["models", "schemas"]
