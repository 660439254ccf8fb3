"""Embedding text templates per content type."""

from recommender.embedding import get_embed_text, validate_item_for_embedding
from recommender.models import ContentItem, ContentType


class TestTemplates:
    def test_anime(self):
        item = ContentItem(
            id="a1",
            type=ContentType.ANIME,
            title_en="Attack on Titan",
            title_jp="進撃の巨人",
            description="Humanity fights titans.",
            genres=["Action", "Drama"],
            studios=["Wit Studio"],
        )
        text = get_embed_text(item)
        assert text.startswith("Attack on Titan is an anime (進撃の巨人). Description: Humanity fights titans.")
        assert "Genres: Action, Drama." in text
        assert "Studios: Wit Studio." in text

    def test_movie_caps_cast(self):
        cast = [f"Actor {i}" for i in range(15)]
        item = ContentItem(id="m1", type=ContentType.MOVIE, title_en="Heat", actors=cast)
        text = get_embed_text(item)
        assert text.startswith("Heat is a movie. Plot: No description available.")
        assert "Actor 9" in text
        assert "Actor 10" not in text

    def test_tv_series(self):
        item = ContentItem(id="t1", type=ContentType.TV_SERIES, title_original="Dark", networks=["Netflix"])
        text = get_embed_text(item)
        assert text.startswith("Dark is a TV series.")
        assert "Networks: Netflix." in text

    def test_game_strips_html_and_formats_score(self):
        item = ContentItem.from_document(
            {"_id": "g1", "title": "Portal", "description": "<p>A <b>puzzle</b> game.</p>", "metacritic_score": "90"},
            "game",
        )
        text = get_embed_text(item)
        assert "About: A puzzle game." in text
        assert "Metacritic Score: 90." in text

    def test_game_without_score(self):
        item = ContentItem(id="g2", type=ContentType.GAME, title="Unrated")
        assert "Metacritic Score: N/A." in get_embed_text(item)

    def test_content_type_override(self):
        item = ContentItem(id="x", type=ContentType.MOVIE, title_en="Dark")
        assert get_embed_text(item, ContentType.TV_SERIES).startswith("Dark is a TV series.")

    def test_unknown_type_falls_back_to_generic(self):
        doc = {"id": "b1", "type": "book", "title": "Dune", "description": "Spice."}
        assert get_embed_text(doc) == "Dune: Spice."

    def test_raw_document_is_normalised(self):
        doc = {"_id": "m2", "title_en": "Ronin", "genres": [{"name": "Action"}]}
        assert "Genres: Action." in get_embed_text(doc, "movie")


class TestValidation:
    def test_requires_title(self):
        ok, reason = validate_item_for_embedding(ContentItem(id="x", type=ContentType.MOVIE))
        assert not ok
        assert reason == "Missing title fields"

    def test_valid(self):
        assert validate_item_for_embedding(ContentItem(id="x", type=ContentType.MOVIE, title="Heat")) == (True, "")
