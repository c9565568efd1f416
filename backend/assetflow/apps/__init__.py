"""Feature apps: accounts, inventory, audits and events."""
