"""Abstract base output sink.

WHY: The aggregation pipeline produces one BatchProcessResult per API
key, and callers want it rendered in different ways (console dump, JSON
files). This base class enforces a consistent interface so the pipeline
and CLI can work with any sink generically.

HOW: BaseSink is an ABC with a ``name`` property and an ``emit()``
method. Sinks are registered by mode name in sinks/__init__.py.

RULES:
- emit() is called once per API key, after that key's batch settles
- emit() may raise; the pipeline isolates sink failures per key
- Sinks must never write a full API key anywhere but file names

To add a new output mode:
1. Create a new file in sinks/
2. Subclass BaseSink
3. Implement emit() and name
4. Register in SINKS dict in sinks/__init__.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from fireflies_sdk.core.batch import BatchProcessResult


class BaseSink(ABC):
    """Abstract base for all output sinks."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable sink name, e.g. 'JSON files'."""

    @abstractmethod
    def emit(self, result: BatchProcessResult, api_key: str) -> None:
        """Render one key's result.

        Args:
            result: The key's settled batch result.
            api_key: The key the result belongs to.
        """
