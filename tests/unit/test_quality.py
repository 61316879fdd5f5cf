"""Unit tests for content quality scoring."""

import pytest

from notestream.analysis.quality import (
    NOTEWORTHY_THRESHOLD,
    analyze_content_quality,
    count_words,
    filler_count,
    matched_indicators,
)


def indicator_names(text):
    return [indicator.name for indicator in matched_indicators(text)]


@pytest.mark.unit
class TestAnalyzeContentQuality:

    def test_empty_content(self):
        quality = analyze_content_quality("   ")

        assert quality.score == 0.0
        assert quality.is_noteworthy is False
        assert quality.reason == "Empty content"

    def test_too_short(self):
        quality = analyze_content_quality("hello there")

        assert quality.score == pytest.approx(0.1)
        assert quality.is_noteworthy is False
        assert quality.reason == "Content too short"

    def test_filler_only_is_not_noteworthy(self):
        quality = analyze_content_quality("um, so, yeah")

        assert quality.score <= NOTEWORTHY_THRESHOLD
        assert quality.score == pytest.approx(0.15 - (2 / 3) * 0.1)
        assert quality.is_noteworthy is False
        assert quality.reason == "No significant information detected"

    def test_informative_sentence_is_noteworthy(self):
        text = "The report shows a 20% increase in Q3 revenue"
        quality = analyze_content_quality(text)

        assert quality.score >= NOTEWORTHY_THRESHOLD
        assert quality.is_noteworthy is True
        assert quality.reason.startswith("Content contains")

        names = indicator_names(text)
        assert "numbers" in names
        assert "technical terms" in names
        assert "causal relationships" in names

    def test_indicators_count_once(self):
        once = analyze_content_quality("The budget grew by 20 percent this year")
        many = analyze_content_quality("The budget grew by 20 30 40 percent this year")

        assert once.score == pytest.approx(many.score)

    def test_question_penalty(self):
        statement = analyze_content_quality("The launch plan is ready.")
        question = analyze_content_quality("The launch plan is ready?")

        assert statement.score - question.score == pytest.approx(0.02)

    def test_bare_minimum_length_is_noteworthy(self):
        text = " ".join(["zzz"] * 120)
        quality = analyze_content_quality(text)

        assert quality.score == pytest.approx(0.15)
        assert quality.is_noteworthy is True
        assert quality.reason == "Content meets minimum length"

    def test_excessive_length_penalty(self):
        text = " ".join(["zzz"] * 151)
        quality = analyze_content_quality(text)

        assert quality.score == pytest.approx(0.10)
        assert quality.is_noteworthy is False

    def test_score_is_clamped(self):
        text = ("On Monday John said the new database system will improve results by 40% "
                "because the team finished the project plan in the office before the deadline")
        quality = analyze_content_quality(text)

        assert 0.0 <= quality.score <= 1.0
        assert quality.is_noteworthy is True


@pytest.mark.unit
class TestIndicators:

    def test_proper_noun_inside_sentence(self):
        assert "proper nouns" in indicator_names("We met with Alice yesterday")

    def test_sentence_initial_capital_is_not_proper_noun(self):
        assert "proper nouns" not in indicator_names("Tomorrow we ship")

    def test_matching_is_case_insensitive(self):
        assert "work terms" in indicator_names("MEETING at noon")

    def test_filler_count(self):
        assert filler_count("Um, I think it is basically done") == 3
        assert filler_count("Quarterly revenue grew") == 0

    def test_count_words(self):
        assert count_words("  one two\tthree\nfour ") == 4
        assert count_words("") == 0
