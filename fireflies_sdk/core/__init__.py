"""Multi-account aggregation core.

WHY: The core package holds the only part of the library with real
scheduling content: paging through each account's meetings, assigning
shared meetings to one owner, and fetching them in paced waves.

HOW: pagination.py discovers ids, assignment.py deduplicates and assigns
owners, batch.py runs fetch tasks in bounded waves, pipeline.py wires
them together per key.

RULES:
- assignment.py is pure; only pagination.py and pipeline.py touch the client
- Nothing here persists state between runs
"""
