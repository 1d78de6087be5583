"""Turn a budget-analysis reply into a fully typed ``BudgetAnalysisResult``.

JSON is recovered with the shared cleaning cascade; when no object can be
recovered the reply is mined with label-driven text patterns instead.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

from ..common.json_tools import extract_json
from .contracts import BudgetAnalysisResult

logger = logging.getLogger(__name__)

DEFAULT_ANALYSIS = "根据当前预算情况，建议合理分配各项支出，优先安排必要的住宿和交通费用，同时预留一定的应急资金。"

DEFAULT_SUGGESTIONS = (
    "优先安排必游景点和特色美食体验",
    "提前预订住宿和交通工具可节省费用",
    "预留10-15%预算作为应急资金",
)

UNAVAILABLE_ANALYSIS = "预算分析服务暂时不可用，请稍后重试。系统正在努力为您提供更好的服务。"

UNAVAILABLE_SUGGESTIONS = (
    "合理规划预算分配，优先安排重要项目",
    "提前预订可享受优惠价格",
    "预留应急资金应对意外支出",
)

BREAKDOWN_TITLES = {
    "accommodation": "住宿分析",
    "food": "餐饮分析",
    "transportation": "交通分析",
    "activities": "活动分析",
}

MIN_ANALYSIS_LENGTH = 20
MIN_SUGGESTION_LENGTH = 5
MAX_SUGGESTION_LENGTH = 100
MAX_SUGGESTIONS = 3

_ANALYSIS_PATTERNS = (
    re.compile(r"(?:预算|分析|使用情况)[：:]?(.*?)(?:建议|剩余|$)", re.DOTALL),
    re.compile(r"(?:概览|总结|情况)[：:]?(.*?)(?:建议|详细|$)", re.DOTALL),
    re.compile(r"(.*?)(?:建议|推荐|$)", re.DOTALL),
)

_SUGGESTION_PATTERNS = (
    re.compile(r"建议[：:]?(.*?)(?:剩余|$)", re.DOTALL),
    re.compile(r"推荐[：:]?(.*?)(?:剩余|$)", re.DOTALL),
    re.compile(r"优化[：:]?(.*?)(?:剩余|$)", re.DOTALL),
)
_SUGGESTION_SPLIT = re.compile(r"[。；;\n]")
_SUGGESTION_LABEL = re.compile(r"^(?:建议|推荐|优化)[：:]?\s*")

_BLANK_LINES = re.compile(r"\n\s*\n")
_INLINE_WHITESPACE = re.compile(r"[^\S\n]+")
_SPACES_AROUND_NEWLINE = re.compile(r" *\n *")
_SENTENCE_END = re.compile(r"([。！？])\s*(\S)")
_LIST_MARKER = re.compile(r"(?<![\d.])(\d+\.)(?!\d)[ \t]*")
_COLON = re.compile(r"(：|(?<!\d):(?!\d))[ \t]*")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def format_analysis_text(value: Any) -> str:
    """Normalize paragraph spacing and punctuation-driven line breaks."""
    if not value:
        return ""
    if isinstance(value, dict):
        return format_structured_analysis(value)
    if not isinstance(value, str):
        value = str(value)

    text = value.replace("\r\n", "\n").replace("\r", "\n")
    text = _BLANK_LINES.sub("\n\n", text).strip()
    text = _INLINE_WHITESPACE.sub(" ", text)
    text = _SENTENCE_END.sub("\\1\n\n\\2", text)
    text = _LIST_MARKER.sub("\n\\1 ", text)
    text = _COLON.sub("\\1 ", text)
    text = _SPACES_AROUND_NEWLINE.sub("\n", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def format_structured_analysis(data: dict[str, Any]) -> str:
    """Render an object-shaped ``analysis``: overview, then titled category sections."""
    sections: list[str] = []

    overview = data.get("overview")
    if isinstance(overview, str) and overview.strip():
        sections.append(overview.strip())

    breakdown = data.get("breakdown")
    if not isinstance(breakdown, dict):
        breakdown = {key: value for key, value in data.items() if key in BREAKDOWN_TITLES}

    for key, value in breakdown.items():
        if isinstance(value, str) and value.strip():
            sections.append(f"{BREAKDOWN_TITLES.get(key, key)}：\n{value.strip()}")

    return "\n\n".join(sections)


def _coerce_suggestions(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    suggestions: list[str] = []
    for item in value:
        if isinstance(item, str):
            suggestions.append(item)
        elif isinstance(item, (int, float)) and not isinstance(item, bool):
            suggestions.append(str(item))
    return suggestions


def _coerce_remaining(value: Any) -> float:
    if isinstance(value, bool):
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip().replace(",", ""))
        except ValueError:
            return 0
    if not isinstance(value, (int, float)):
        return 0
    try:
        finite = math.isfinite(value)
    except OverflowError:
        return 0
    return value if finite else 0


def _from_parsed(parsed: dict[str, Any]) -> BudgetAnalysisResult:
    return BudgetAnalysisResult(
        analysis=format_analysis_text(parsed.get("analysis")),
        suggestions=_coerce_suggestions(parsed.get("suggestions")),
        remaining=_coerce_remaining(parsed.get("remaining")),
    )


def _extract_analysis_text(content: str) -> str:
    for pattern in _ANALYSIS_PATTERNS:
        match = pattern.search(content)
        if match and len(match.group(1).strip()) >= MIN_ANALYSIS_LENGTH:
            return match.group(1).strip()
    return DEFAULT_ANALYSIS


def _extract_suggestions(content: str) -> list[str]:
    for pattern in _SUGGESTION_PATTERNS:
        match = pattern.search(content)
        if not match:
            continue
        fragments = []
        for fragment in _SUGGESTION_SPLIT.split(match.group(1)):
            fragment = _SUGGESTION_LABEL.sub("", fragment.strip()).strip()
            if MIN_SUGGESTION_LENGTH <= len(fragment) <= MAX_SUGGESTION_LENGTH:
                fragments.append(fragment)
        if fragments:
            return fragments[:MAX_SUGGESTIONS]
    return list(DEFAULT_SUGGESTIONS)


def extract_from_text(content: str) -> BudgetAnalysisResult:
    """Heuristic extraction for replies that carry no recoverable JSON.

    ``remaining`` is always 0 here; callers recompute it from their own state.
    """
    return BudgetAnalysisResult(
        analysis=format_analysis_text(_extract_analysis_text(content)),
        suggestions=_extract_suggestions(content),
        remaining=0,
    )


def extract_analysis(raw_text: str) -> BudgetAnalysisResult:
    """Recover a ``BudgetAnalysisResult`` from arbitrary model output. Never raises."""
    if not isinstance(raw_text, str):
        raw_text = "" if raw_text is None else str(raw_text)

    try:
        parsed = extract_json(raw_text)
        if parsed is not None:
            return _from_parsed(parsed)

        logger.warning("No JSON object in budget reply (%d chars), using text heuristics", len(raw_text))
        return extract_from_text(raw_text)
    except Exception:
        logger.exception("Budget reply extraction failed")
        return BudgetAnalysisResult(
            analysis=UNAVAILABLE_ANALYSIS,
            suggestions=list(UNAVAILABLE_SUGGESTIONS),
            remaining=0,
        )
