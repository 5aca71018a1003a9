"""
LLM Nodes - Analyze, enhance and restructure prompts.

Language-model calls go through the capability executor. The JSON splitter
is pure data handling and runs locally.
"""

from __future__ import annotations

import json
from typing import Any

from joinrender.core.data_types import PortType
from joinrender.core.execution import ExecutionContext
from joinrender.core.node_types import NodeCategory
from joinrender.nodes.base import NodeHandler, builtin, port

DEFAULT_SYSTEM_PROMPT = """Role: science fiction film director
Task: turn the user's story excerpt into three distinct visual prompts
Output format: JSON
1. Character reference prompt (full body, neutral lighting, green background)
2. Action shot prompt (cinematic lighting, dynamic angle)
3. Close-up prompt (close-up, emotional expression)"""

ASSISTANT_PROMPT = "You are a helpful assistant."

SPLITTER_OUTPUTS = ("提示词 1", "提示词 2", "提示词 3")


LLM_NODE = builtin(
    "llm",
    "LLM",
    NodeCategory.LLM,
    inputs=[port("输入文本", PortType.TEXT)],
    outputs=[port("输出文本", PortType.TEXT)],
    default_data={"systemPrompt": DEFAULT_SYSTEM_PROMPT},
    description="Turn story language into JSON shot descriptions",
)

PROMPT_ENHANCER_NODE = builtin(
    "prompt-enhancer",
    "Prompt Enhancer",
    NodeCategory.LLM,
    inputs=[port("基础提示词", PortType.TEXT)],
    outputs=[port("增强提示词", PortType.TEXT)],
    default_data={"style": "cinematic", "detail": "high"},
    description="Expand a short prompt into a detailed one",
)

IMAGE_ANALYZER_NODE = builtin(
    "image-analyzer",
    "Image Analyzer",
    NodeCategory.LLM,
    inputs=[port("图像", PortType.IMAGE)],
    outputs=[port("描述", PortType.TEXT)],
    description="Describe an image",
)

JSON_SPLITTER_NODE = builtin(
    "json-splitter",
    "JSON Splitter",
    NodeCategory.LLM,
    inputs=[port("JSON 文本", PortType.TEXT)],
    outputs=[port(name, PortType.TEXT) for name in SPLITTER_OUTPUTS],
    description="Parse JSON and split out up to three prompts",
)


def _chat_node(kind: str, name: str, model: str, description: str):
    return builtin(
        kind,
        name,
        NodeCategory.LLM,
        inputs=[port("输入文本", PortType.TEXT)],
        outputs=[port("输出文本", PortType.TEXT)],
        default_data={"systemPrompt": ASSISTANT_PROMPT, "model": model},
        description=description,
    )


CLAUDE_LLM_NODE = _chat_node("claude-llm", "Claude", "claude-3-5-sonnet-20241022", "Anthropic Claude")
GEMINI_LLM_NODE = _chat_node("gemini-llm", "Gemini", "gemini-1.5-flash", "Google Gemini")
DEEPSEEK_LLM_NODE = _chat_node("deepseek-llm", "DeepSeek", "deepseek-chat", "DeepSeek chat")
KIMI_LLM_NODE = _chat_node("kimi-llm", "Kimi", "moonshot-v1-8k", "Moonshot Kimi")
QWEN_LLM_NODE = _chat_node("qwen-llm", "Qwen", "qwen-turbo", "Alibaba Qwen")
GLM_LLM_NODE = _chat_node("glm-llm", "Zhipu GLM", "glm-4-flash", "Zhipu GLM")


async def json_splitter_handler(inputs: dict[str, Any], context: ExecutionContext) -> dict[str, Any]:
    """Split the values of a JSON object (or items of a list) over three outputs."""
    context.report_progress(30, "parsing JSON")
    try:
        parsed = json.loads(inputs.get("JSON 文本") or "{}")
    except (TypeError, json.JSONDecodeError):
        parsed = {}

    if isinstance(parsed, dict):
        values = list(parsed.values())
    elif isinstance(parsed, list):
        values = parsed
    else:
        values = []

    return {
        name: (values[index] if index < len(values) and values[index] else "")
        for index, name in enumerate(SPLITTER_OUTPUTS)
    }


LLM_NODES = [
    LLM_NODE,
    PROMPT_ENHANCER_NODE,
    IMAGE_ANALYZER_NODE,
    JSON_SPLITTER_NODE,
    CLAUDE_LLM_NODE,
    GEMINI_LLM_NODE,
    DEEPSEEK_LLM_NODE,
    KIMI_LLM_NODE,
    QWEN_LLM_NODE,
    GLM_LLM_NODE,
]

LLM_HANDLERS: dict[str, NodeHandler] = {
    "json-splitter": json_splitter_handler,
}
