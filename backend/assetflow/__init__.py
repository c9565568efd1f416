# backend/assetflow/__init__.py
"""
Import ORM models from each app so that Base.metadata.create_all()
sees every table.

The actual model classes are kept in assetflow/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models          # users / roles
from .apps.inventory import models as inventory_models        # locations + assets
from .apps.audits import models as audits_models              # audit runs + items

__all__ = [
    "accounts_models",
    "inventory_models",
    "audits_models",
]
