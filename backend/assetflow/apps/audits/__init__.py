# backend/assetflow/apps/audits/__init__.py
"""
Audits app

Responsible for:
- Parsing scanned serial lists (JSON bodies and CSV uploads)
- Reconciling a scan against the inventory recorded at a location
- Recording each run with its classified items, write-once
- History listing, CSV export and run-to-run diffs
"""
