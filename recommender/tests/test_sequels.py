"""
Sequel Detection Tests

Scenario A: a user who watched "Rocky 2" gets "Rocky 3" as the top sequel candidate.
"""

import asyncio

from recommender.models import CandidateSource, ContentItem, ContentType, RecommendationConfig
from recommender.stages.sequels import SequelDetector

from server.services.json_repository import InMemoryContentRepository

from .fakes import HEAT, M1, ROCKY_3, ROCKY_BALBOA, catalog, make_repository, movie


def rocky_2() -> ContentItem:
    return ContentItem.from_document(
        movie(M1, "Rocky 2", ["Drama", "Sport"], ("Sylvester Stallone", "Talia Shire", "Burt Young"), ["United Artists"]),
        ContentType.MOVIE,
    )


class TestSequelDetector:
    def test_rocky_3_is_top_sequel(self):
        detector = SequelDetector(make_repository())
        found = asyncio.run(detector.detect([rocky_2()], ContentType.MOVIE, {M1}))
        assert [c.id for c in found] == [ROCKY_3, ROCKY_BALBOA]
        assert all(c.source == CandidateSource.SEQUEL for c in found)
        assert found[0].score == 0.99
        assert found[0].score >= found[1].score

    def test_source_item_is_never_a_candidate(self):
        detector = SequelDetector(make_repository())
        found = asyncio.run(detector.candidates_for_item(rocky_2(), ContentType.MOVIE, set()))
        assert M1 not in {c.id for c in found}

    def test_consumed_items_are_filtered(self):
        detector = SequelDetector(make_repository())
        found = asyncio.run(detector.detect([rocky_2()], ContentType.MOVIE, {M1, ROCKY_3}))
        assert [c.id for c in found] == [ROCKY_BALBOA]

    def test_no_identity_no_query(self):
        heat = ContentItem(id=HEAT, type=ContentType.MOVIE, title="Heat")
        detector = SequelDetector(make_repository())
        assert asyncio.run(detector.detect([heat], ContentType.MOVIE, {HEAT})) == []

    def test_per_item_and_total_caps(self):
        docs = [movie(f"saw-{i}", f"Saw {i}", ["Horror"]) for i in range(1, 6)]
        docs += [movie(f"scream-{i}", f"Scream {i}", ["Horror"]) for i in range(1, 6)]
        repo = InMemoryContentRepository({"movies": docs})
        items = [ContentItem.from_document(d, ContentType.MOVIE) for d in (docs[0], docs[5])]
        config = RecommendationConfig(sequels_per_item=3, sequel_total_cap=4, sequel_query_limit=5)
        detector = SequelDetector(repo, config)

        one = asyncio.run(detector.candidates_for_item(items[0], ContentType.MOVIE, {"saw-1"}))
        assert [c.id for c in one] == ["saw-2", "saw-3", "saw-4"]

        found = asyncio.run(detector.detect(items, ContentType.MOVIE, {"saw-1", "scream-1"}))
        assert [c.id for c in found] == ["saw-2", "saw-3", "saw-4", "scream-2"]

    def test_ids_are_emitted_once(self):
        docs = [movie(f"saw-{i}", f"Saw {i}", ["Horror"]) for i in range(1, 6)]
        repo = InMemoryContentRepository({"movies": docs})
        items = [ContentItem.from_document(d, ContentType.MOVIE) for d in docs[:2]]
        found = asyncio.run(SequelDetector(repo).detect(items, ContentType.MOVIE, {"saw-1", "saw-2"}))
        ids = [c.id for c in found]
        assert ids == ["saw-3", "saw-4", "saw-5"]

    def test_failing_item_does_not_stop_detection(self):
        class FlakyRepository(InMemoryContentRepository):
            async def find_by_title_substring(self, pattern, content_type, exclude_id, limit):
                if pattern == "Broken":
                    raise RuntimeError("query failed")
                return await super().find_by_title_substring(pattern, content_type, exclude_id, limit)

        repo = FlakyRepository(catalog())
        broken = ContentItem(id="broken", type=ContentType.MOVIE, title="Broken 2")
        detector = SequelDetector(repo)
        found = asyncio.run(detector.detect([broken, rocky_2()], ContentType.MOVIE, {M1, "broken"}))
        assert [c.id for c in found][:1] == [ROCKY_3]
