"""Split a provider's free-text answer into prompt / improvements / benefits.

Providers are asked for JSON but frequently answer in prose, so this tries
JSON first and then falls back to marker matching on blank-line separated
paragraphs. Best effort only: improvements and expected_benefits may be empty.
"""
import json
import re
from dataclasses import dataclass
from typing import Any

OPTIMIZED_MARKERS = ("优化后的", "Optimized Prompt", "optimizedPrompt")
IMPROVEMENT_MARKERS = ("改进", "优化", "Improvements", "improvements")
BENEFIT_MARKERS = ("预期", "效果", "Expected Benefits", "expectedBenefits")

_OPTIMIZED_LABEL = re.compile(
    r"^.*?(优化后的.*?提示词|Optimized Prompt|optimizedPrompt)[:：]\s*", re.IGNORECASE
)
_PARAGRAPH_BREAK = re.compile(r"\r?\n\r?\n")
_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)


@dataclass(frozen=True)
class ParsedOptimization:
    optimized_prompt: str
    improvements: str = ""
    expected_benefits: str = ""


def flatten_text(value: Any) -> str:
    """Storage only accepts strings; lists become newline-joined text."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "\n".join(str(item) for item in value)
    return str(value)


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def _from_json(data: Any) -> ParsedOptimization | None:
    if not isinstance(data, dict):
        return None
    optimized = data.get("optimizedPrompt")
    if not isinstance(optimized, str) or not optimized.strip():
        return None
    # Some providers wrap the whole JSON answer again inside optimizedPrompt
    if optimized.strip().startswith("{"):
        nested = _from_json(_load_json(optimized))
        if nested is not None:
            return nested
    return ParsedOptimization(
        optimized_prompt=optimized,
        improvements=flatten_text(data.get("improvements")),
        expected_benefits=flatten_text(data.get("expectedBenefits")),
    )


def _from_sections(text: str) -> ParsedOptimization:
    optimized = improvements = benefits = ""
    for section in _PARAGRAPH_BREAK.split(text):
        if any(marker in section for marker in OPTIMIZED_MARKERS):
            optimized = _OPTIMIZED_LABEL.sub("", section, count=1).strip()
        elif any(marker in section for marker in IMPROVEMENT_MARKERS):
            improvements = section.strip()
        elif any(marker in section for marker in BENEFIT_MARKERS):
            benefits = section.strip()
    if not optimized:
        optimized = text.strip()
    return ParsedOptimization(optimized, improvements, benefits)


def parse_optimization_output(raw: str | None) -> ParsedOptimization:
    text = raw or ""
    parsed = _from_json(_load_json(text))
    if parsed is None:
        match = _JSON_BLOCK.search(text)
        if match:
            parsed = _from_json(_load_json(match.group(0)))
    if parsed is not None:
        return parsed
    return _from_sections(text)
