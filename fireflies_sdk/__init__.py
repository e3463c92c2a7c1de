"""Fireflies SDK: typed async client and multi-account meeting aggregation.

WHY: The Fireflies.ai GraphQL API exposes users, transcripts, bites and
AI app outputs one query at a time, and each API key only sees its own
account's meetings. This package wraps the API in a typed client and
adds a pipeline that pulls every meeting across several accounts,
fetching shared meetings only once.

HOW: Three layers: api (client, field projections, models), core
(pagination, ownership assignment, paced batch runner, pipeline) and
sinks (console / JSON output). Each layer is independently testable.

RULES:
- All remote calls go through api.FirefliesClient
- The core never talks HTTP directly; it takes a client factory
- Output rendering is pluggable through sinks.SINKS
"""

__version__ = "0.1.0"
