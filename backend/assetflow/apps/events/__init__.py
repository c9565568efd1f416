"""
Events app

Activity events published by the audit engine, kept in a bounded
history and fanned out to live subscribers.
"""
