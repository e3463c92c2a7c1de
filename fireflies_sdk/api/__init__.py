"""Fireflies API client package: async GraphQL interface to Fireflies.ai.

WHY: Every remote operation (users, transcripts, bites, AI app outputs,
uploads, live meetings) is one GraphQL request. This package keeps all
of that behind a single client class so the aggregation pipeline only
sees a small, typed surface.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. FirefliesClient has
one method per operation. Field projections are validated by fields.py;
fixed-shape inputs and responses are dataclasses in models.py.

RULES:
- All HTTP calls go through FirefliesClient (no direct httpx usage elsewhere)
- Authentication is via Bearer token, one key per client instance
"""

from fireflies_sdk.api.client import (
    FirefliesAPIError,
    FirefliesClient,
    FirefliesGraphQLError,
)
from fireflies_sdk.api.fields import InvalidFieldError, validate_fields
from fireflies_sdk.api.models import UserRole

__all__ = [
    "FirefliesAPIError",
    "FirefliesClient",
    "FirefliesGraphQLError",
    "InvalidFieldError",
    "UserRole",
    "validate_fields",
]
