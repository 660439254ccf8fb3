"""
Orchestrator Tests

Scenario B: recommend_by_id with six index matches including the item itself returns
at most five items and never the item.
Scenario C: an unknown user yields an empty result without raising.

Result invariants checked throughout: the flattened list is exactly
movies + tv_series + animes + games, every bucket holds only its own type, and
nothing the user consumed is recommended.
"""

import asyncio

from recommender.models import CONTENT_TYPE_ORDER, ContentType, RecommendationResult, ResultStatus
from recommender.ports import VectorMatch
from recommender.stages.orchestrator import RecommendationOrchestrator

from .fakes import (
    BETTER_CALL_SAUL,
    BREAKING_BAD,
    HEAT,
    M1,
    PORTAL,
    PORTAL_2,
    RONIN,
    ROCKY_3,
    ROCKY_BALBOA,
    FakeVectorIndex,
    make_repository,
)


def assert_result_invariants(result: RecommendationResult, consumed=()):
    flat = [c for ct in CONTENT_TYPE_ORDER for c in result.bucket(ct)]
    assert [c.id for c in result.all] == [c.id for c in flat]
    for ct in CONTENT_TYPE_ORDER:
        assert all(c.type == ct for c in result.bucket(ct))
    assert not set(consumed) & {c.id for c in result.all}
    assert all(0.0 <= c.score <= 1.0 for c in result.all)


def neighbours():
    return {
        M1: [
            VectorMatch(id=M1, score=1.0, type_tag="movie"),
            VectorMatch(id=ROCKY_3, score=0.93, type_tag="movie"),
            VectorMatch(id=HEAT, score=0.81, type_tag="movie"),
            VectorMatch(id=BREAKING_BAD, score=0.78, type_tag="tvseries"),
            VectorMatch(id=RONIN, score=0.74, type_tag="movie"),
            VectorMatch(id=ROCKY_BALBOA, score=0.70, type_tag="movie"),
        ],
        PORTAL: [
            VectorMatch(id=PORTAL, score=1.0, type_tag="game"),
            VectorMatch(id=PORTAL_2, score=0.95, type_tag="game"),
        ],
        BREAKING_BAD: [
            VectorMatch(id=BETTER_CALL_SAUL, score=0.91, type_tag="tvseries"),
            VectorMatch(id=BREAKING_BAD, score=1.0, type_tag="tvseries"),
        ],
    }


def orchestrator(index=None):
    return RecommendationOrchestrator(make_repository(), index or FakeVectorIndex(neighbours()))


class TestRecommendForUser:
    def test_sequels_lead_movie_bucket(self):
        result = asyncio.run(orchestrator().recommend_for_user(["alice"], 10))

        assert result.status == ResultStatus.OK
        assert [c.id for c in result.movies] == [ROCKY_3, ROCKY_BALBOA, HEAT, RONIN]
        assert [c.id for c in result.games] == [PORTAL_2]
        assert result.tv_series == [] and result.animes == []
        assert_result_invariants(result, consumed=[M1, PORTAL])

    def test_top_k_applies_per_type(self):
        result = asyncio.run(orchestrator().recommend_for_user(["alice"], 1))
        assert [c.id for c in result.movies] == [ROCKY_3]
        assert [c.id for c in result.games] == [PORTAL_2]
        assert len(result.all) == 2

    def test_only_first_user_is_used(self):
        result = asyncio.run(orchestrator().recommend_for_user(["carol", "alice"], 10))
        assert result.movies == []
        assert [c.id for c in result.tv_series] == [BETTER_CALL_SAUL]
        assert_result_invariants(result, consumed=[BREAKING_BAD])

    def test_unknown_user_is_empty(self):
        result = asyncio.run(orchestrator().recommend_for_user(["nobody"], 10))
        assert result.is_empty
        assert result.status == ResultStatus.NO_DATA
        assert result.reason == "no_profile"

    def test_user_without_history(self):
        result = asyncio.run(orchestrator().recommend_for_user(["bob"]))
        assert result.is_empty
        assert result.reason == "no_history"

    def test_no_user_ids(self):
        result = asyncio.run(orchestrator().recommend_for_user([]))
        assert result.reason == "no_user_id"

    def test_failing_type_leaves_other_buckets(self):
        class BrokenGames(FakeVectorIndex):
            async def query_by_id(self, item_id, top_k):
                if item_id == PORTAL:
                    raise RuntimeError("index down")
                return await super().query_by_id(item_id, top_k)

        result = asyncio.run(orchestrator(BrokenGames(neighbours())).recommend_for_user(["alice"], 10))
        # Game sequels are still found; only the similarity fill is lost
        assert [c.id for c in result.games] == [PORTAL_2]
        assert [c.id for c in result.movies][:2] == [ROCKY_3, ROCKY_BALBOA]

    def test_repository_failure_degrades_to_empty(self):
        repo = make_repository()

        async def broken(user_id):
            raise ConnectionError("store unreachable")

        repo.join_user_lists = broken
        result = asyncio.run(RecommendationOrchestrator(repo, FakeVectorIndex()).recommend_for_user(["alice"]))
        assert result.is_empty
        assert result.reason == "error"


class TestRecommendById:
    def test_excludes_item_and_respects_top_k(self):
        index = FakeVectorIndex(neighbours())
        result = asyncio.run(orchestrator(index).recommend_by_id(M1, 5))

        ids = [c.id for c in result.all]
        assert M1 not in ids
        assert len(ids) <= 5
        assert index.queries == [(M1, 6)]
        assert [c.id for c in result.movies] == [ROCKY_3, HEAT, RONIN, ROCKY_BALBOA]
        assert [c.id for c in result.tv_series] == [BREAKING_BAD]
        assert_result_invariants(result)

    def test_self_match_not_first(self):
        result = asyncio.run(orchestrator().recommend_by_id(BREAKING_BAD, 5))
        assert [c.id for c in result.all] == [BETTER_CALL_SAUL]

    def test_scores_come_from_index(self):
        result = asyncio.run(orchestrator().recommend_by_id(PORTAL, 3))
        assert [(c.id, c.score) for c in result.games] == [(PORTAL_2, 0.95)]

    def test_unknown_item(self):
        result = asyncio.run(orchestrator().recommend_by_id("missing", 5))
        assert result.is_empty
        assert result.status == ResultStatus.NO_DATA

    def test_index_failure_is_empty(self):
        index = FakeVectorIndex(neighbours(), failing=[M1])
        result = asyncio.run(orchestrator(index).recommend_by_id(M1, 5))
        assert result.is_empty
        assert result.reason == "error"

    def test_id_unknown_to_index_is_absent_not_error(self):
        index = FakeVectorIndex(neighbours(), missing=[M1])
        result = asyncio.run(orchestrator(index).recommend_by_id(M1, 5))
        assert result.is_empty
        assert result.reason == "no_recommendations"

    def test_unknown_and_missing_tags_dropped(self):
        index = FakeVectorIndex(
            {
                "x": [
                    VectorMatch(id=HEAT, score=0.9, type_tag="book"),
                    VectorMatch(id=RONIN, score=0.8),
                    VectorMatch(id=ROCKY_3, score=-0.1, type_tag="movie"),
                ]
            }
        )
        result = asyncio.run(orchestrator(index).recommend_by_id("x", 5))
        assert [(c.id, c.score, c.type) for c in result.all] == [(ROCKY_3, 0.0, ContentType.MOVIE)]
