"""
Card-note generation from a stored analysis report.

Three stages, each taking the previous stage's output:
1. extract_concepts: report sections -> up to 5 concepts
2. build_card: concept + analysis id -> learning card
3. build_connections: cards -> positional links

Everything is string/regex work over the report text. The section headings
written by helpers.ai_helpers.build_report are relied on verbatim.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from helpers import store_helpers
from helpers.date_utils import _now_display_str

logger = logging.getLogger(__name__)

MAX_CONCEPTS = 5
UNKNOWN_CONCEPT = "Unknown concept"

TERMINATORS = ".!?。！？"

SMART_SUMMARY_HEADINGS = ("Smart Summary", "智能摘要")
KEYWORD_HEADINGS = ("Core Keywords", "核心關鍵詞")
BOILERPLATE_HEADINGS = (
    "Processed Files", "File Statistics", "Processing Results",
    "處理文件", "文件統計", "處理結果",
)

INDICATOR_WORDS = (
    "introduc", "discuss", "analy", "explor", "mention", "explain", "suggest",
    "method", "strateg", "principle", "feature", "advantage", "important",
    "key", "core", "main",
    "介紹", "討論", "分析", "探討", "提到", "說明", "建議", "方法", "策略",
    "原則", "特點", "優勢", "重要", "關鍵", "核心", "主要",
)

KEYWORD_STOPWORDS = {
    "file", "process", "system", "analysis", "content", "data", "information", "result",
    "文件", "處理", "系統", "分析", "內容", "數據", "信息", "結果",
}

EXAMPLE_MARKERS = (
    "for example", "for instance", "such as", "case", "in practice",
    "specifically", "including", "especially",
    "例如", "比如", "舉例", "案例", "實例", "具體", "實際", "包括", "特別是",
)

FALLBACK_CONCEPTS = [
    {"concept": "Core document content analysis", "importance": "high", "source": "fallback"},
    {"concept": "Key information extraction", "importance": "medium", "source": "fallback"},
    {"concept": "Knowledge point organization", "importance": "medium", "source": "fallback"},
]

_SECTION_TAIL = r"[^\n]*[\s\S]*?(?=##|$)"
# Latin stems match at a word start; these short ones only as whole words.
WHOLE_WORD_TERMS = {"key", "core", "main"}


def _term_pattern(term: str) -> str:
    if not term.isascii():
        return re.escape(term)
    pattern = r"\b" + re.escape(term)
    if term in WHOLE_WORD_TERMS:
        pattern += r"\b"
    return pattern


_INDICATOR_PATTERN = "|".join(_term_pattern(word) for word in INDICATOR_WORDS)
_IMPORTANT_SENTENCE_RE = re.compile(
    rf"[^{TERMINATORS}\n]*(?:{_INDICATOR_PATTERN})[^{TERMINATORS}\n]*[{TERMINATORS}]",
    re.IGNORECASE,
)
_KEYWORD_RE = re.compile(r"[\u4e00-\u9fa5A-Za-z]{2,15}")
_GENERIC_SENTENCE_RE = re.compile(rf"[^{TERMINATORS}\n]{{10,50}}[{TERMINATORS}]")


def _heading_re(headings) -> re.Pattern:
    names = "|".join(re.escape(h) for h in headings)
    return re.compile(rf"##[^\n]*?(?:{names}){_SECTION_TAIL}", re.IGNORECASE)


_SMART_SUMMARY_RE = _heading_re(SMART_SUMMARY_HEADINGS)
_KEYWORDS_RE = _heading_re(KEYWORD_HEADINGS)
_BOILERPLATE_RES = [_heading_re((heading,)) for heading in BOILERPLATE_HEADINGS]


def find_section(analysis_text: str, pattern: re.Pattern) -> str:
    """Whole section including its heading line, or ''."""
    match = pattern.search(analysis_text or "")
    return match.group(0) if match else ""


def _section_body(section: str) -> str:
    # Drop the heading line.
    return section.split("\n", 1)[1].strip() if "\n" in section else ""


def strip_boilerplate(analysis_text: str) -> str:
    text = analysis_text or ""
    for pattern in _BOILERPLATE_RES:
        text = pattern.sub("", text)
    return text


def _clean(sentence: str, chars: str) -> str:
    return re.sub(f"[{re.escape(chars)}]", "", sentence).strip()


def extract_concepts(analysis_text: str, content_text: str = "") -> List[Dict[str, str]]:
    """
    Pull up to 5 concepts out of an analysis report.

    Order of sources: smart summary sentences (high), core keywords (medium),
    generic sentences from the non-boilerplate report (medium), then the
    3 fixed fallback concepts. Never returns an empty list.
    """
    concepts: List[Dict[str, str]] = []
    analysis_text = analysis_text or ""

    summary_body = _section_body(find_section(analysis_text, _SMART_SUMMARY_RE))
    keywords_body = _section_body(find_section(analysis_text, _KEYWORDS_RE))

    if summary_body:
        for sentence in _IMPORTANT_SENTENCE_RE.findall(summary_body)[:3]:
            clean_sentence = _clean(sentence, TERMINATORS + "-*")
            if 8 < len(clean_sentence) < 60:
                concepts.append({"concept": clean_sentence, "importance": "high", "source": "smart_summary"})

    if keywords_body:
        keywords = [k for k in _KEYWORD_RE.findall(keywords_body) if k.lower() not in KEYWORD_STOPWORDS]
        for keyword in keywords[:4]:
            concepts.append({"concept": keyword, "importance": "medium", "source": "keywords"})

    if not concepts:
        logger.info("[CardNotes] No summary/keyword concepts, scanning the rest of the report")
        for sentence in _GENERIC_SENTENCE_RE.findall(strip_boilerplate(analysis_text))[:3]:
            clean_sentence = _clean(sentence, TERMINATORS + "-*#")
            if len(clean_sentence) > 8:
                concepts.append({"concept": clean_sentence, "importance": "medium", "source": "filtered_analysis"})

    if not concepts:
        logger.info("[CardNotes] Using fallback concepts")
        return [dict(c) for c in FALLBACK_CONCEPTS]

    logger.info(f"[CardNotes] Extracted {len(concepts)} concepts")
    return concepts[:MAX_CONCEPTS]


def _relevant_content(analysis_text: str) -> str:
    summary = find_section(analysis_text, _SMART_SUMMARY_RE)
    keywords = find_section(analysis_text, _KEYWORDS_RE)
    relevant = summary
    if keywords:
        relevant += " " + keywords
    if not relevant:
        relevant = strip_boilerplate(analysis_text)
    return relevant


def _sentences_matching(text: str, term_pattern: str) -> List[str]:
    pattern = rf"[^{TERMINATORS}\n]*(?:{term_pattern})[^{TERMINATORS}\n]*[{TERMINATORS}]"
    return re.findall(pattern, text, re.IGNORECASE)


def _sentences_containing(text: str, needle: str) -> List[str]:
    return _sentences_matching(text, re.escape(needle))


def _context_sentences(text: str, needle: str) -> List[str]:
    """Preceding sentence plus the sentence that mentions needle."""
    pattern = (
        rf"[^{TERMINATORS}\n]*[{TERMINATORS}]\s*"
        rf"[^{TERMINATORS}\n]*{re.escape(needle)}[^{TERMINATORS}\n]*[{TERMINATORS}]"
    )
    return re.findall(pattern, text, re.IGNORECASE)


def _load_summary(analysis_id: Any) -> str:
    if analysis_id is None or analysis_id == "":
        return ""
    try:
        analysis = store_helpers.get_analysis(analysis_id)
    except Exception as e:
        logger.warning(f"[CardNotes] Could not load analysis {analysis_id}: {e}")
        return ""
    if not analysis:
        return ""
    return analysis.get("analysis_summary") or ""


def _explain(name: str, source: str, relevant: str) -> str:
    explanation = ""
    if source == "smart_summary":
        related = _sentences_containing(relevant, name)
        if related:
            explanation = _clean(" ".join(related[:2]), "#-*")
        else:
            context = _context_sentences(relevant, name)
            if context:
                explanation = _clean(context[0], "#-*")
    elif source == "keywords":
        related = _sentences_containing(relevant, name)
        if related:
            explanation = _clean(related[0], "#-*")

    if len(explanation) < 10:
        explanation = (
            f"{name} is an important concept in the document; according to the smart summary "
            f"it carries real weight in the overall content."
        )
    return explanation


def _find_example(name: str, relevant: str) -> str:
    for marker in EXAMPLE_MARKERS:
        examples = _sentences_matching(relevant, _term_pattern(marker))
        if examples:
            return _clean(examples[0], "#-*")
    return (
        f"Based on the smart summary, {name} shows its value in practice through the methods "
        f"and strategies the document describes."
    )


def _application(name: str, source: str) -> str:
    suggestions = [
        f"Study the key descriptions of {name} in the smart summary",
        f"Understand the role {name} plays in the overall structure of the document",
        f"Apply the core points of {name} to related real-world situations",
    ]
    if source == "keywords":
        suggestions.append("Notice how this keyword is used, and what it means, across different passages")
    elif source == "smart_summary":
        suggestions.append(f"Use the summary to deepen your understanding and use of {name}")
    suggestions.append("Review and practice regularly, linking this to other concepts")
    return "\n".join(f"{i}. {line}" for i, line in enumerate(suggestions, start=1))


def build_card(concept: Dict[str, Any], analysis_id: Any = None) -> Dict[str, str]:
    """Turn one concept into a learning card. Lookup failures degrade to templates."""
    if not isinstance(concept, dict):
        concept = {}
    name = str(concept.get("concept") or "").strip() or UNKNOWN_CONCEPT
    source = concept.get("source") or ""

    relevant = _relevant_content(_load_summary(analysis_id))
    logger.info(f'[CardNotes] Building card for "{name}" (source: {source or "unknown"})')

    return {
        "title": name,
        "concept": _explain(name, source, relevant),
        "example": _find_example(name, relevant),
        "application": _application(name, source),
    }


def build_cards(concepts: List[Dict[str, Any]], analysis_id: Any = None) -> List[Dict[str, str]]:
    return [build_card(concept, analysis_id) for concept in concepts]


def _card_title(card: Any) -> str:
    if isinstance(card, dict) and card.get("title"):
        return str(card["title"])
    return UNKNOWN_CONCEPT


def build_connections(cards: Optional[List[Any]]) -> List[Dict[str, str]]:
    """Neighbouring cards (at most 3 links) plus first-to-last when there are 3 or more."""
    if not isinstance(cards, list) or len(cards) < 2:
        return []

    titles = [_card_title(card) for card in cards]
    connections = []
    for i in range(min(len(titles) - 1, 3)):
        a, b = titles[i], titles[i + 1]
        connections.append({
            "from": a,
            "to": b,
            "relationship": f"{a} and {b} complement each other in the document, "
                            f"together forming a complete body of knowledge",
        })

    if len(titles) >= 3:
        first, last = titles[0], titles[-1]
        connections.append({
            "from": first,
            "to": last,
            "relationship": f"{first} is the foundational concept, and {last} is where it is applied in practice",
        })
    return connections


def render_markdown(cards: List[Dict[str, Any]], connections: List[Dict[str, Any]]) -> str:
    """Card notes as a downloadable Markdown document."""
    lines = [
        "# 🗂️ AI Card Notes",
        "",
        "> Atomic learning cards generated from a document analysis",
        "",
        "## 📚 Learning Cards",
        "",
    ]
    for index, card in enumerate(cards or [], start=1):
        card = card if isinstance(card, dict) else {}
        lines += [
            f"### Card {index}: {card.get('title', UNKNOWN_CONCEPT)}",
            "",
            "**💡 Concept:**",
            f"{card.get('concept', '')}",
            "",
            "**📋 Example:**",
            f"{card.get('example', '')}",
            "",
            "**🎯 Application:**",
            f"{card.get('application', '')}",
            "",
            "---",
            "",
        ]

    if connections:
        lines += ["## 🔗 Concept Map", ""]
        for connection in connections:
            connection = connection if isinstance(connection, dict) else {}
            lines += [
                f"- **{connection.get('from', '')}** ↔ **{connection.get('to', '')}**",
                f"  - Relationship: {connection.get('relationship', '')}",
                "",
            ]

    lines += ["---", "", f"*Generated at: {_now_display_str()}*", ""]
    return "\n".join(lines)
