"""Tests for rewrite_headlines.validate module."""

import pytest

from common.settings import RewriteSettings
from rewrite_headlines.models import RewriteContext
from rewrite_headlines.numbers import build_source_quant_context
from rewrite_headlines.validate import required_words, sanitize_headline, validate_rewrite


def ctx(has_content: bool, *parts: str) -> RewriteContext:
    return RewriteContext(has_content, build_source_quant_context(parts))


class TestSanitizeHeadline:
    def test_strips_wrapping_quotes(self) -> None:
        assert sanitize_headline('"Hello world"') == "Hello world"
        assert sanitize_headline("“Hello world”") == "Hello world"

    @pytest.mark.parametrize("raw", ["Headline.", "Headline —", "Headline |", "Headline:"])
    def test_strips_trailing_punctuation(self, raw) -> None:
        assert sanitize_headline(raw) == "Headline"

    def test_collapses_whitespace(self) -> None:
        assert sanitize_headline("Too   many   spaces") == "Too many spaces"

    def test_none(self) -> None:
        assert sanitize_headline(None) == ""


class TestBasicChecks:
    def test_empty(self) -> None:
        result = validate_rewrite("Original headline", "", ctx(False))
        assert not result.accepted
        assert result.reason == "empty"

    def test_same_as_original_ignores_case_and_punctuation(self) -> None:
        original = "Storm hits coast, thousands evacuated from low-lying towns"
        result = validate_rewrite(original, "storm hits coast -- thousands evacuated from low lying towns", ctx(False))
        assert result.reason == "same_as_original"


class TestLengthChecks:
    def test_too_short(self) -> None:
        result = validate_rewrite("Original", "Too short", ctx(False))
        assert not result.accepted
        assert result.reason == "too_short:9"

    def test_too_long(self) -> None:
        result = validate_rewrite("Original", ("A " * 111).strip(), ctx(False))
        assert not result.accepted
        assert result.reason == "too_long:221"

    def test_long_but_within_bounds(self) -> None:
        candidate = (
            "EPA finalizes landmark emissions reduction rule for power plants across the nation "
            "requiring significant cuts to greenhouse gas pollution from coal and natural gas "
            "facilities by deadline"
        )
        result = validate_rewrite("Different original title for testing purposes here", candidate, ctx(False))
        assert result.accepted

    def test_lower_bound_is_stricter_with_content(self) -> None:
        candidate = "Court halts gas line over flood risk"
        assert validate_rewrite("Judges rule", candidate, ctx(False)).accepted
        assert validate_rewrite("Judges rule", candidate, ctx(True)).reason == f"too_short:{len(candidate)}"


class TestCompressionChecks:
    def test_long_original_without_content(self) -> None:
        result = validate_rewrite(
            "This Is A Very Long And Wordy Original Headline About Climate Change",
            "Climate policy shifts reshape energy markets across multiple European regions",
            ctx(False),
        )
        assert result.accepted

    def test_too_few_words(self) -> None:
        result = validate_rewrite("Some original headline about climate", "Short words only five", ctx(False))
        assert not result.accepted

    def test_with_content_accepts_proportional_rewrite(self) -> None:
        result = validate_rewrite(
            "The International Energy Agency Releases New Report On Global Coal Demand Decline Projection",
            "IEA projects sharp global coal demand decline through end of decade period",
            ctx(True),
        )
        assert result.accepted

    def test_with_content_rejects_over_compression(self) -> None:
        result = validate_rewrite(
            "A very long and detailed original headline with many many words that goes on and on "
            "about climate change impacts worldwide",
            "Climate change worldwide short rewrite here placeholder text",
            ctx(True),
        )
        assert not result.accepted
        assert result.reason.startswith("compression:")

    def test_twelve_word_original_needs_seven_words(self) -> None:
        original = "Officials in the coastal city announce new flood defense plan for residents"

        six = validate_rewrite(original, "Coastal city unveils new flood defenses", ctx(False))
        seven = validate_rewrite(original, "Coastal city unveils new flood defense plan", ctx(False))

        assert six.reason == "compression:6/7"
        assert seven.accepted

    def test_social_post_original(self) -> None:
        settings = RewriteSettings()
        original = " ".join(["word"] * 45)
        assert required_words(original, False, settings) == settings.social_post_min_words


VAGUE_HEADLINES = [
    "EPA announces sweeping new emissions rule aiming to reduce pollution by next decade",
    "Solar industry grows rapidly across Asian markets, impacting global energy investments significantly",
    "Tesla vehicle sales shift across European markets, reflecting changing consumer preferences overall",
    "Hydrogen projects face major setbacks amid concerns over long-term economic viability",
    "International report detailing the progress of renewable energy adoption across world markets",
    "New peer-reviewed study outlines key strategies for reducing carbon emissions in transport",
    "Comprehensive new framework addressing biodiversity loss in global financial portfolios launched",
    "India solar panel manufacturing faces challenges as domestic production exceeds current demand",
    "WRI emphasizes urgent need for systemic overhaul to combat growing climate crisis worldwide",
    "Recent project cancellations raise doubts about hydrogen viability in energy transition plans",
]

GOOD_HEADLINES = [
    (
        "EPA finalizes power plant emissions rule, requires coal facilities to cut CO2 80% by 2032",
        "EPA announces new rule requiring 80% CO2 cuts from coal power plants by 2032",
    ),
    (
        "Ørsted cancels 2.6GW New Jersey offshore wind project, cites supply chain costs and rate caps",
        "Ørsted to cancel 2.6GW offshore wind project in New Jersey due to rising costs",
    ),
    (
        "Federal appeals court blocks Mountain Valley Pipeline, cites insufficient climate impact review",
        "Court blocks Mountain Valley Pipeline project over climate review",
    ),
    (
        "India solar manufacturing hits oversupply glut as factory capacity outpaces domestic demand",
        "India's solar manufacturing sector faces growing oversupply",
    ),
    (
        "BNP Paribas launches country-level biodiversity risk scoring for lending and investment portfolios",
        "French bank BNP Paribas creates new biodiversity risk framework",
    ),
    (
        "Amazon emitted 170M tons of carbon in 2023 as extreme drought ravaged rainforest, study finds",
        "Study says Amazon rainforest emitted 170M tons of carbon in 2023 drought",
    ),
]


class TestPatternChecks:
    @pytest.mark.parametrize("headline", VAGUE_HEADLINES)
    def test_vague_headlines_rejected(self, headline) -> None:
        result = validate_rewrite("Different original title here", headline, ctx(False))
        assert not result.accepted
        assert result.reason.startswith("vague:")

    @pytest.mark.parametrize("headline,source", GOOD_HEADLINES)
    def test_good_headlines_accepted(self, headline, source) -> None:
        result = validate_rewrite(source, headline, ctx(False, source, headline))
        assert result.accepted, result.reason
        assert result.reason == "ok"

    @pytest.mark.parametrize(
        "headline,family",
        [
            ("EPA will likely finalize sweeping climate rule by end of current year", "hedge"),
            ("New solar tariffs set to reshape global manufacturing and supply chain landscape", "hedge"),
            ("New solid-state battery tech proves to be a game-changer for grid storage systems", "hype"),
            ("Unprecedented heat wave strikes southern Europe for third consecutive week running", "hype"),
        ],
    )
    def test_hedge_and_hype_rejected(self, headline, family) -> None:
        result = validate_rewrite("Original title", headline, ctx(False))
        assert not result.accepted
        assert result.reason.startswith(f"{family}:")

    def test_disabled_family_is_skipped(self) -> None:
        settings = RewriteSettings(check_hedge=False)
        headline = "EPA will likely finalize sweeping climate rule by end of current year"
        assert validate_rewrite("Original title", headline, ctx(False), settings).accepted


class TestNumericChecks:
    def test_number_missing_from_source(self) -> None:
        original = "Major company announces large offshore wind project in the North Sea region"
        result = validate_rewrite(
            original,
            "Company launches 5GW wind project in North Sea, targets completion by next year",
            ctx(False, original),
        )
        assert not result.accepted
        assert result.reason == "unsourced_number:5gw"

    def test_number_present_in_source(self) -> None:
        original = "Company launches 5GW wind project in the North Sea targeting grid connection"
        result = validate_rewrite(
            original,
            "Company begins construction on 5GW offshore wind farm in the North Sea region",
            ctx(False, original),
        )
        assert result.accepted

    def test_number_from_dek_counts(self) -> None:
        original = "Company launches wind project in the North Sea"
        candidate = "Company launches 5GW wind project in North Sea"

        without = validate_rewrite(original, candidate, ctx(False, original))
        with_dek = validate_rewrite(
            original, candidate, ctx(False, original, "The 5GW project is due online in 2030.")
        )

        assert without.reason == "unsourced_number:5gw"
        assert with_dek.accepted


class TestTrail:
    def test_accepted_trail_lists_every_check(self) -> None:
        original = "Company launches 5GW wind project in the North Sea targeting grid connection"
        result = validate_rewrite(
            original,
            "Company begins construction on 5GW offshore wind farm in the North Sea region",
            ctx(False, original),
        )
        assert result.trail == ("empty", "same_as_original", "length", "compression", "numbers", "patterns")

    def test_rejected_trail_stops_at_failure(self) -> None:
        result = validate_rewrite("Original", "Too short", ctx(False))
        assert result.trail == ("empty", "same_as_original")
