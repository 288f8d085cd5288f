"""Product recommendation post-pass.

The catalog scans a bounded set of candidate transactions; this module
filters out products the buyer already owns and prunes candidates left
with no products, so callers never see empty product lists.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


def filter_recommendations(
    candidates: Iterable[dict[str, Any]],
    owned_uids: Iterable[str],
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """Drop owned products from each candidate, then prune empty candidates.

    Candidate order is preserved. ``limit`` bounds the number of
    candidates considered (before pruning), not the number returned.
    """
    owned = set(owned_uids)
    scanned = list(candidates)
    if limit is not None:
        scanned = scanned[:limit]

    kept: list[dict[str, Any]] = []
    for candidate in scanned:
        products = [
            product
            for product in candidate.get("products") or []
            if product.get("uid") not in owned
        ]
        if not products:
            continue
        kept.append({**candidate, "products": products})
    return kept
