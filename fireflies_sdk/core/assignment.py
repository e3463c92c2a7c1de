"""Cross-account deduplication and meeting ownership.

WHY: Several accounts often see the same meeting (every invited
participant with a Fireflies seat does). Fetching a shared meeting once
per account wastes rate-limit budget and produces duplicates in the
aggregate. Each meeting must be fetched exactly once, by one account
that can actually see it.

HOW: Two passes over the already-collected per-key id lists:
  1. Union of all ids in first-seen order, walking keys in order.
  2. For each key in order, claim every id (in union order) that the key
     can see and no earlier key has claimed.

RULES:
- Earliest key in the ordering wins a shared meeting. This is a fixed,
  order-dependent policy; it does not look at recency or record quality
- Partitions are pairwise disjoint and their union is the global set
- Every key in the ordering gets an entry, possibly empty
- Pure function: no I/O, inputs are not modified
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence


@dataclass(frozen=True)
class OwnershipAssignment:
    """Result of assign_ownership().

    Attributes:
        unique_ids: Every distinct meeting id, in first-seen order.
        owners: API key -> meeting ids that key is responsible for fetching.
    """

    unique_ids: List[str]
    owners: Dict[str, List[str]]

    def owner_of(self, meeting_id: str) -> Optional[str]:
        for api_key, ids in self.owners.items():
            if meeting_id in ids:
                return api_key
        return None


def assign_ownership(
    index: Mapping[str, Sequence[str]],
    key_order: Optional[Sequence[str]] = None,
) -> OwnershipAssignment:
    """Deduplicate meeting ids across keys and give each one a single owner.

    Args:
        index: API key -> meeting ids visible to that key (pagination order).
        key_order: Priority order for the tie-break. Defaults to the
            mapping's own order. Must name exactly the keys of index.

    Returns:
        OwnershipAssignment with one (possibly empty) partition per key.
    """
    order = list(index.keys()) if key_order is None else list(key_order)
    if len(set(order)) != len(order) or set(order) != set(index.keys()):
        raise ValueError("key_order must be a permutation of the index keys")

    unique_ids: List[str] = []
    seen = set()
    for api_key in order:
        for meeting_id in index[api_key]:
            if meeting_id not in seen:
                seen.add(meeting_id)
                unique_ids.append(meeting_id)

    owners: Dict[str, List[str]] = {}
    assigned = set()
    for api_key in order:
        visible = set(index[api_key])
        claimed = [m for m in unique_ids if m in visible and m not in assigned]
        assigned.update(claimed)
        owners[api_key] = claimed

    return OwnershipAssignment(unique_ids=unique_ids, owners=owners)
