"""Tests for ingest_articles.clean module."""

from datetime import datetime, timezone

from ingest_articles.clean import clean, clean_text, to_feed_item


class TestCleanText:
    def test_strips_html_tags(self) -> None:
        assert clean_text("<h1>Title</h1> <p>Body</p>") == "Title Body"

    def test_removes_escaped_quotes(self) -> None:
        assert clean_text('He said \\"hello\\"') == 'He said "hello"'

    def test_collapses_whitespace(self) -> None:
        assert clean_text("multiple   spaces   here") == "multiple spaces here"

    def test_none_returns_none(self) -> None:
        assert clean_text(None) is None

    def test_whitespace_only_returns_none(self) -> None:
        assert clean_text("   \n\t ") is None


class TestToFeedItem:
    def test_accepts_fetcher_field_names(self) -> None:
        item = to_feed_item(
            {
                "source": "Reuters",
                "title": "<b>Storm</b> hits coast",
                "link": " https://example.com/a ",
                "summary": "Thousands  evacuated",
                "text": "Body",
                "published_at": "2024-06-01T10:00:00Z",
                "source_weight": "1.5",
            }
        )
        assert item.title == "Storm hits coast"
        assert item.url == "https://example.com/a"
        assert item.dek == "Thousands evacuated"
        assert item.content_text == "Body"
        assert item.published_at == datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)
        assert item.source_weight == 1.5

    def test_missing_required_fields(self) -> None:
        assert to_feed_item({"source": "Reuters", "title": "", "url": "https://example.com/a"}) is None
        assert to_feed_item({"source": "Reuters", "title": "Storm"}) is None

    def test_invalid_weight_is_ignored(self) -> None:
        item = to_feed_item(
            {"source": "Reuters", "title": "Storm", "url": "https://example.com/a", "source_weight": "heavy"}
        )
        assert item.source_weight is None

    def test_unparsable_date_is_none(self) -> None:
        item = to_feed_item(
            {"source": "Reuters", "title": "Storm", "url": "https://example.com/a", "published_at": "soon"}
        )
        assert item.published_at is None


class TestClean:
    def test_drops_invalid_items(self) -> None:
        raw = [
            {"source": "Reuters", "title": "Storm", "url": "https://example.com/a"},
            {"source": "Reuters", "title": None, "url": "https://example.com/b"},
        ]
        assert [item.url for item in clean(raw)] == ["https://example.com/a"]

    def test_empty_input(self) -> None:
        assert clean([]) == []
