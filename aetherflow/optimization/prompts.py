"""System prompts sent ahead of the user's content, one per category."""

DEFAULT_CATEGORY = "general"

REFINE_INSTRUCTION = "请进一步优化上述提示词，使其更加完善和有效。"

_RESPONSE_FORMAT = """请按照以下 JSON 格式返回优化结果：
{
  "optimizedPrompt": "优化后的提示词",
  "improvements": [
    "改进点1",
    "改进点2"
  ],
  "expectedBenefits": [
    "预期效果1",
    "预期效果2"
  ]
}"""

_INPUT_FORMAT = """输入格式:
<prompt>
用户的原始提示词
</prompt>"""

SYSTEM_PROMPTS: dict[str, str] = {
    "general": f"""你是一位专业的提示词优化专家。你的任务是优化用户提供的提示词。

{_INPUT_FORMAT}

{_RESPONSE_FORMAT}

优化原则：
1. 添加清晰的结构（背景、任务、格式要求等）
2. 提高明确性，消除模糊表述
3. 添加必要的上下文信息
4. 改进格式和组织
5. 根据领域添加适当的专业术语
6. 明确指出期望的输出格式、长度和风格""",
    "programming": f"""你是一位专业的编程提示词优化专家。你的任务是优化用户提供的编程相关提示词。

{_INPUT_FORMAT}

{_RESPONSE_FORMAT}

优化原则：
1. 明确指定编程语言和版本
2. 添加代码示例或期望输出格式
3. 说明性能或效率要求
4. 指定代码风格和注释要求
5. 明确错误处理和边界情况考虑
6. 添加测试用例或验证条件""",
    "writing": f"""你是一位专业的写作提示词优化专家。你的任务是优化用户提供的写作相关提示词。

{_INPUT_FORMAT}

{_RESPONSE_FORMAT}

优化原则：
1. 明确目标受众和写作风格
2. 指定字数和格式要求
3. 提供结构建议和内容框架
4. 明确语气和情感基调
5. 添加具体的例子或参考
6. 说明写作目的和预期效果""",
}


def normalize_category(category: str | None) -> str:
    """Unknown or missing categories fall back to general."""
    if category in SYSTEM_PROMPTS:
        return category
    return DEFAULT_CATEGORY


def get_system_prompt(category: str | None) -> str:
    return SYSTEM_PROMPTS[normalize_category(category)]


def build_messages(
    content: str, category: str | None, previous_optimized: str | None = None
) -> list[dict[str, str]]:
    messages = [
        {"role": "system", "content": get_system_prompt(category)},
        {"role": "user", "content": f"<prompt>\n{content}\n</prompt>"},
    ]
    if previous_optimized:
        messages.append({"role": "assistant", "content": previous_optimized})
        messages.append({"role": "user", "content": REFINE_INSTRUCTION})
    return messages
