"""
Integration Nodes - Generic HTTP calls and self-hosted model servers.

``http-request`` and ``webhook-trigger`` are run by HttpNodeExecutor. The
server nodes are provider kinds and go to the capability executor.
"""

from __future__ import annotations

from joinrender.core.data_types import PortType
from joinrender.core.node_types import NodeCategory
from joinrender.nodes.base import builtin, port
from joinrender.nodes.llm import ASSISTANT_PROMPT

HTTP_REQUEST_KIND = "http-request"
WEBHOOK_TRIGGER_KIND = "webhook-trigger"


HTTP_REQUEST_NODE = builtin(
    HTTP_REQUEST_KIND,
    "HTTP Request",
    NodeCategory.CUSTOM,
    inputs=[port("URL", PortType.TEXT), port("请求体", PortType.TEXT)],
    outputs=[port("响应", PortType.TEXT), port("状态码", PortType.TEXT)],
    default_data={"method": "GET", "headers": "{}", "timeout": 30000},
    description="Send an HTTP request to any API",
)

WEBHOOK_TRIGGER_NODE = builtin(
    WEBHOOK_TRIGGER_KIND,
    "Webhook Trigger",
    NodeCategory.CUSTOM,
    outputs=[port("数据"), port("Headers", PortType.TEXT)],
    default_data={"path": "my-webhook", "method": "POST", "secret": ""},
    description="Endpoint that external services call to start a workflow",
)

OPENAI_COMPATIBLE_NODE = builtin(
    "openai-compatible",
    "OpenAI-Compatible API",
    NodeCategory.CUSTOM,
    inputs=[port("提示词", PortType.TEXT)],
    outputs=[port("回复", PortType.TEXT)],
    default_data={
        "baseUrl": "http://localhost:11434/v1",
        "model": "llama2",
        "systemPrompt": ASSISTANT_PROMPT,
    },
    description="Chat with an OpenAI-compatible server such as Ollama or vLLM",
)

SD_WEBUI_API_NODE = builtin(
    "sd-webui-api",
    "SD WebUI API",
    NodeCategory.CUSTOM,
    inputs=[port("提示词", PortType.TEXT)],
    outputs=[port("图像", PortType.IMAGE)],
    default_data={
        "baseUrl": "http://127.0.0.1:7860",
        "negativePrompt": "",
        "width": 512,
        "height": 512,
        "steps": 20,
        "cfgScale": 7,
        "sampler": "Euler a",
    },
    description="Generate with a local Stable Diffusion WebUI",
)

COMFYUI_API_NODE = builtin(
    "comfyui-api",
    "ComfyUI API",
    NodeCategory.CUSTOM,
    inputs=[port("工作流JSON", PortType.TEXT)],
    outputs=[port("图像", PortType.IMAGE)],
    default_data={"baseUrl": "http://127.0.0.1:8188"},
    description="Queue a workflow on a local ComfyUI server",
)


INTEGRATION_NODES = [
    HTTP_REQUEST_NODE,
    WEBHOOK_TRIGGER_NODE,
    OPENAI_COMPATIBLE_NODE,
    SD_WEBUI_API_NODE,
    COMFYUI_API_NODE,
]
