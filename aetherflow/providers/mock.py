"""Deterministic stand-in for a provider when no API key is available."""
from aetherflow.optimization.parsing import ParsedOptimization

MOCK_SUFFIX = "-mock"


def mock_model_name(model: str) -> str:
    return f"{model}{MOCK_SUFFIX}"


def mock_optimization(
    content: str, category: str, previous_optimized: str | None = None
) -> ParsedOptimization:
    """Build the result directly from the input; user text is never re-parsed."""
    base = (previous_optimized or content).strip()
    round_note = "（第二轮及以后）" if previous_optimized else ""
    optimized = (
        f"请以专业的{category}助手身份完成以下任务{round_note}：\n"
        f"{base}\n"
        "要求：结构清晰，明确输出格式、长度和风格。"
    )
    return ParsedOptimization(
        optimized_prompt=optimized,
        improvements="改进点：补充了角色设定；明确了输出格式与约束。",
        expected_benefits="预期效果：回答更聚焦，结果更易于复用。",
    )
