"""
Inventory module.

Read side of the asset register: locations and the assets recorded
at them, served to the audit engine as a snapshot.
"""

from . import models  # noqa: F401
