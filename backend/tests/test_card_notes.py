import pytest

from helpers import card_notes, store_helpers
from helpers.card_notes import (
    FALLBACK_CONCEPTS,
    MAX_CONCEPTS,
    build_card,
    build_connections,
    extract_concepts,
    render_markdown,
)


def test_concepts_from_summary_and_keywords(sample_report):
    concepts = extract_concepts(sample_report)

    assert concepts[0] == {
        "concept": "The guide introduces a core cleaning method",
        "importance": "high",
        "source": "smart_summary",
    }
    keywords = [c["concept"] for c in concepts if c["source"] == "keywords"]
    # "data" is a generic term and never becomes a concept
    assert keywords == ["pipeline", "cleaning", "schema", "validation"]
    assert len(concepts) == MAX_CONCEPTS


def test_chinese_headings_are_recognised():
    report = "## 🎯 智能摘要\n本文介紹了資料清理的核心方法。\n\n## 🏷️ 核心關鍵詞\n清理 • 管線\n"
    concepts = extract_concepts(report)

    assert concepts[0]["source"] == "smart_summary"
    assert [c["concept"] for c in concepts if c["source"] == "keywords"] == ["清理", "管線"]


def test_generic_sentences_used_when_no_known_sections():
    report = "## 📁 Processed Files\n- skipped file name here.\n\n## Notes\nThis sentence is long enough to count."
    concepts = extract_concepts(report)

    assert concepts == [
        {"concept": "This sentence is long enough to count", "importance": "medium", "source": "filtered_analysis"}
    ]


@pytest.mark.parametrize("text", ["", "no headings, no terminators", None])
def test_fallback_concepts_in_fixed_order(text):
    concepts = extract_concepts(text)

    assert concepts == FALLBACK_CONCEPTS
    assert [c["importance"] for c in concepts] == ["high", "medium", "medium"]


def test_card_fields_are_filled_when_lookup_fails(monkeypatch):
    def boom(analysis_id):
        raise RuntimeError("database is down")

    monkeypatch.setattr(store_helpers, "get_analysis", boom)

    card = build_card({"concept": "pipeline", "importance": "medium", "source": "keywords"}, 42)
    assert card["title"] == "pipeline"
    assert all(card[field].strip() for field in ("title", "concept", "example", "application"))
    assert card["application"].startswith("1. ")


def test_card_without_concept_name_uses_placeholder_title():
    card = build_card({}, None)
    assert card["title"] == card_notes.UNKNOWN_CONCEPT


def test_card_explanation_and_example_come_from_summary(monkeypatch):
    summary = (
        "## 🎯 Smart Summary\n"
        "Batching improves throughput for large jobs. "
        "For example, nightly imports group rows in chunks of 500.\n"
    )
    monkeypatch.setattr(store_helpers, "get_analysis", lambda analysis_id: {"analysis_summary": summary})

    card = build_card({"concept": "Batching", "source": "smart_summary"}, 1)
    assert "Batching improves throughput for large jobs." in card["concept"]
    assert card["example"] == "For example, nightly imports group rows in chunks of 500."
    assert "5. " in card["application"]


@pytest.mark.parametrize("count, expected", [(0, 0), (1, 0), (2, 1), (3, 3), (4, 4), (5, 4), (6, 4)])
def test_connection_count(count, expected):
    cards = [{"title": f"Card {i}"} for i in range(count)]
    assert len(build_connections(cards)) == expected


def test_connections_link_neighbours_then_first_to_last():
    cards = [{"title": t} for t in ("A", "B", "C", "D", "E")]
    pairs = [(c["from"], c["to"]) for c in build_connections(cards)]

    assert pairs == [("A", "B"), ("B", "C"), ("C", "D"), ("A", "E")]


def test_connections_tolerate_bad_input():
    assert build_connections(None) == []
    assert build_connections("not a list") == []
    assert build_connections([{}, "x"])[0]["from"] == card_notes.UNKNOWN_CONCEPT


def test_markdown_export_lists_cards_and_links():
    cards = [
        {"title": "A", "concept": "about A", "example": "A in use", "application": "1. apply A"},
        {"title": "B", "concept": "about B", "example": "B in use", "application": "1. apply B"},
    ]
    text = render_markdown(cards, build_connections(cards))

    assert "### Card 1: A" in text
    assert "### Card 2: B" in text
    assert "## 🔗 Concept Map" in text
    assert "- **A** ↔ **B**" in text


def test_indicator_words_do_not_match_inside_other_words():
    report = "## 🎯 Smart Summary\nThe monkey will remain in the domain forever.\n"
    concepts = extract_concepts(report)

    assert all(c["source"] != "smart_summary" for c in concepts)


def test_whole_indicator_word_still_counts():
    report = "## 🎯 Smart Summary\nOne key idea drives the plan.\n"
    concepts = extract_concepts(report)

    assert concepts[0] == {"concept": "One key idea drives the plan", "importance": "high", "source": "smart_summary"}


def test_example_marker_must_start_a_word(monkeypatch):
    summary = "## 🎯 Smart Summary\nThe demo is a showcase of lowercase names.\n"
    monkeypatch.setattr(store_helpers, "get_analysis", lambda analysis_id: {"analysis_summary": summary})

    card = build_card({"concept": "demo", "source": "smart_summary"}, 1)
    assert card["example"].startswith("Based on the smart summary")
