"""
Document analysis report generation.

The summary comes from Gemini when available; any failure falls back to a
local "longest sentences" summary. Everything else in the report is built
from fixed keyword/regex rules.
"""

import logging
import math
import os
import re
from collections import Counter
from typing import List

from ai.app import is_ai_available, model_label, summarize_text
from helpers.date_utils import _now_display_str

logger = logging.getLogger(__name__)

MAX_AI_TEXT_LENGTH = 2000
LOCAL_ENGINE_LABEL = "local heuristic summarizer"

STOP_WORDS = {
    "的", "是", "在", "和", "有", "了", "也", "都", "就", "要", "可以", "這", "一個", "我們",
    "the", "is", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "are", "was", "were", "this", "that", "these", "those", "from", "as", "an", "be",
    "it", "its", "not", "can", "will", "has", "have", "had",
}

IMAGE_NAME_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|bmp|webp)$", re.IGNORECASE)
VISUAL_NAME_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif)$", re.IGNORECASE)

CATEGORY_RULES = [
    (re.compile(r"報告|分析|統計|數據|report|analy[sz]|statistic|data", re.IGNORECASE), "📊 Data Analysis"),
    (re.compile(r"計劃|方案|策略|目標|plan|proposal|strateg|goal", re.IGNORECASE), "📋 Planning & Strategy"),
    (re.compile(r"技術|開發|系統|程式|technical|technology|develop|system|program", re.IGNORECASE), "💻 Technical Documentation"),
    (re.compile(r"會議|討論|決定|紀錄|meeting|discussion|decision|minutes", re.IGNORECASE), "📝 Meeting Notes"),
]

EMPHASIS_PATTERN = re.compile(r"重要|關鍵|核心|important|critical|essential", re.IGNORECASE)


def generate_local_summary(text: str) -> str:
    """The three longest sentences (over 10 chars), longest first."""
    sentences = [s.strip() for s in re.split(r"[.!?。！？]", text) if len(s.strip()) > 10]
    top_sentences = sorted(sentences, key=len, reverse=True)[:3]
    if not top_sentences:
        return "The documents contain important information; reading the original text is recommended."
    return ". ".join(top_sentences) + "."


def extract_keywords(text: str) -> List[str]:
    """Top 20 words by frequency, ties in first-seen order."""
    cleaned = re.sub(r"[^\w\s\u4e00-\u9fff]", " ", text.lower())
    words = [w for w in cleaned.split() if len(w) > 2 and w not in STOP_WORDS]
    return [word for word, _ in Counter(words).most_common(20)]


def generate_key_points(text: str, file_names: List[str]) -> str:
    points = []

    if len(text) > 1000:
        points.append("• The documents are rich in content and contain a lot of detail")

    if any("report" in name.lower() for name in file_names):
        points.append("• Includes report-style documents; focus on their conclusions")

    if len(file_names) > 1:
        points.append(f"• Multi-file analysis ({len(file_names)} files); the contents may be related")

    image_files = [name for name in file_names if IMAGE_NAME_PATTERN.search(name)]
    if image_files:
        points.append(f"• Includes {len(image_files)} image file(s); visual content may need review")

    if EMPHASIS_PATTERN.search(text):
        points.append("• The documents explicitly flag important information; handle it first")

    return "\n".join(points) if points else "• Read the documents in detail for more information"


def categorize_content(text: str, file_names: List[str]) -> str:
    categories = [label for pattern, label in CATEGORY_RULES if pattern.search(text)]
    if any(VISUAL_NAME_PATTERN.search(name) for name in file_names):
        categories.append("🖼️ Visual Material")
    return " | ".join(categories) if categories else "📄 General Documents"


def generate_action_items(text: str, file_names: List[str]) -> str:
    actions = [
        "🔍 Dig into the core concepts and key information",
        "📚 Build a knowledge structure and organize the main points",
        "🔗 Analyze links and dependencies between the documents",
        "📋 Draft follow-up actions and next steps",
    ]
    if len(file_names) > 1:
        actions.append("🔄 Compare similarities and differences across the files")
    return "\n".join(actions)


def analyze_relationships(file_names: List[str]) -> str:
    if len(file_names) == 1:
        return "Single-file analysis; no cross-file comparison"
    extensions = {os.path.splitext(name)[1].lower() for name in file_names}
    return f"Detected {len(extensions)} file type(s); the files may complement each other"


def build_report(combined_text: str, file_names: List[str], summary: str, engine: str) -> str:
    keywords = extract_keywords(combined_text)
    file_list = "\n".join(f"- {name}" for name in file_names)
    return f"""# AI Analysis Report

## 📁 Processed Files
{file_list}

## 📊 File Statistics
- File count: {len(file_names)}
- Total characters: {len(combined_text):,}

## 🎯 Smart Summary
{summary}

## 🔍 Key Points
{generate_key_points(combined_text, file_names)}

## 🏷️ Core Keywords
{' • '.join(keywords[:15])}

## 📈 Content Categories
{categorize_content(combined_text, file_names)}

## 💡 Action Items
{generate_action_items(combined_text, file_names)}

## 🔗 Relationship Analysis
{analyze_relationships(file_names)}

---
*🤖 Report generated by {engine} | Generated at: {_now_display_str()}*"""


def generate_fallback_analysis(text: str, file_names: List[str]) -> str:
    file_list = "\n".join(f"- {name}" for name in file_names)
    return f"""# AI Analysis Report (fallback mode)

## Processed Files
{file_list}

## Basic Statistics
- File count: {len(file_names)}
- Content length: {len(text)} characters
- Estimated reading time: {math.ceil(len(text) / 1000)} minute(s)

## Brief Analysis
Result of the local file analysis. Review the documents manually for more accurate information.

*System notice: the analysis service is unavailable, local mode was used*"""


async def _summarize(combined_text: str) -> tuple:
    """Returns (summary, engine label)."""
    if len(combined_text) > MAX_AI_TEXT_LENGTH:
        text_to_analyze = combined_text[:MAX_AI_TEXT_LENGTH] + "..."
    else:
        text_to_analyze = combined_text

    try:
        if not is_ai_available():
            raise RuntimeError("Gemini client is not configured")
        summary = await summarize_text(text_to_analyze)
        return summary, model_label()
    except Exception as e:
        logger.info(f"[AI] Summarization unavailable, using local summary: {e}")
        return generate_local_summary(text_to_analyze), LOCAL_ENGINE_LABEL


async def perform_analysis(combined_text: str, file_names: List[str]) -> str:
    """Build the Markdown analysis report for the combined document text."""
    try:
        summary, engine = await _summarize(combined_text)
        return build_report(combined_text, file_names, summary, engine)
    except Exception as e:
        logger.error(f"[AI] Report generation failed: {e}")
        return generate_fallback_analysis(combined_text, file_names)
