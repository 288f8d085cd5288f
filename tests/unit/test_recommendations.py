"""Unit tests for the recommendation post-pass."""

from __future__ import annotations

from retail_graph.domain.recommendations import filter_recommendations


def _candidate(uid: str, *product_uids: str) -> dict:
    return {
        "uid": uid,
        "ip": "1.1.1.1",
        "device": "web",
        "date": 1,
        "products": [{"uid": p, "name": p.upper(), "price": 1} for p in product_uids],
    }


class TestFilterRecommendations:
    def test_removes_owned_products(self) -> None:
        result = filter_recommendations([_candidate("t1", "a", "b")], owned_uids=["a"])
        assert [p["uid"] for p in result[0]["products"]] == ["b"]

    def test_prunes_empty_candidates(self) -> None:
        candidates = [_candidate("t1", "a"), _candidate("t2", "b"), _candidate("t3")]
        result = filter_recommendations(candidates, owned_uids=["a"])
        assert [c["uid"] for c in result] == ["t2"]

    def test_limit_applies_before_pruning(self) -> None:
        candidates = [_candidate("t1", "a"), _candidate("t2", "b"), _candidate("t3", "c")]
        result = filter_recommendations(candidates, owned_uids=["a"], limit=2)
        assert [c["uid"] for c in result] == ["t2"]

    def test_does_not_mutate_input(self) -> None:
        candidate = _candidate("t1", "a", "b")
        filter_recommendations([candidate], owned_uids=["a"])
        assert len(candidate["products"]) == 2

    def test_missing_products_key(self) -> None:
        assert filter_recommendations([{"uid": "t1"}], owned_uids=[]) == []

    def test_nothing_owned_keeps_everything(self) -> None:
        candidates = [_candidate("t1", "a"), _candidate("t2", "b")]
        assert filter_recommendations(candidates, owned_uids=[]) == candidates
