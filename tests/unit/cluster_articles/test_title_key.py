"""Tests for cluster_articles.title_key module."""

from cluster_articles.title_key import best_fuzzy_match, key_similarity, normalize_title_key


class TestNormalizeTitleKey:
    def test_drops_case_punctuation_and_stop_words(self) -> None:
        key = normalize_title_key("The Fed Holds Rates Steady, Again!")
        assert key == "fed holds rates steady"

    def test_folds_accents(self) -> None:
        assert normalize_title_key("Ørsted cancels Éire project") == "rsted cancels eire project"

    def test_only_stop_words_is_empty(self) -> None:
        assert normalize_title_key("The and of it") == ""

    def test_none(self) -> None:
        assert normalize_title_key(None) == ""

    def test_max_chars(self) -> None:
        assert len(normalize_title_key("storm " * 50, max_chars=20)) <= 20


class TestKeySimilarity:
    def test_identical(self) -> None:
        assert key_similarity("storm hits coast", "storm hits coast") == 1.0

    def test_unrelated_is_low(self) -> None:
        assert key_similarity("storm hits coast", "quarterly profit jumps") < 0.5


class TestBestFuzzyMatch:
    def test_picks_best_above_threshold(self) -> None:
        candidates = [
            (1, "bank raises rates"),
            (2, "federal reserve holds interest rate steady"),
        ]
        match = best_fuzzy_match("federal reserve holds interest rates steady", candidates, 0.86)
        assert match is not None
        assert match.cluster_id == 2
        assert match.score >= 0.86

    def test_none_below_threshold(self) -> None:
        assert best_fuzzy_match("storm hits coast", [(1, "bank raises rates")], 0.86) is None

    def test_ties_keep_first(self) -> None:
        match = best_fuzzy_match("storm", [(1, "storm"), (2, "storm")], 0.5)
        assert match.cluster_id == 1

    def test_empty_candidates(self) -> None:
        assert best_fuzzy_match("storm", [], 0.5) is None
