"""
Custom Nodes - User-defined node kinds backed by HTTP calls.

A CustomNodeConfig describes ports plus one of four behaviours:
- http: a templated request to any URL, with response mapping
- webhook: reports the webhook endpoint it is bound to
- code: stored for round-tripping only, not executable here
- custom-api: the first endpoint of a small API description

Configs are kept in a JSON list (see CustomNodeStore) and each one becomes
a NodeDefinition of kind ``custom-<id>``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from joinrender.core.data_types import PortType
from joinrender.core.node_types import NodeCategory, NodeDefinition, NodeRegistry, PortSpec
from joinrender.core.settings import CUSTOM_NODES_PATH

logger = logging.getLogger(__name__)

CUSTOM_KIND_PREFIX = "custom-"
CUSTOM_ID_FIELD = "_customNodeId"
CUSTOM_TYPE_FIELD = "_nodeType"


class CustomNodeType(Enum):
    HTTP = "http"
    WEBHOOK = "webhook"
    CODE = "code"
    CUSTOM_API = "custom-api"


class AuthType(Enum):
    NONE = "none"
    BEARER = "bearer"
    BASIC = "basic"
    API_KEY = "api-key"


@dataclass
class CustomPort:
    name: str
    type: PortType = PortType.ANY
    required: bool = False
    default: Any = None

    @classmethod
    def from_dict(cls, data: dict) -> CustomPort:
        return cls(
            name=str(data["name"]),
            type=PortType.parse(data.get("type")),
            required=bool(data.get("required", False)),
            default=data.get("default"),
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"name": self.name, "type": self.type.value}
        if self.required:
            data["required"] = True
        if self.default is not None:
            data["default"] = self.default
        return data


@dataclass
class HttpAuth:
    type: AuthType = AuthType.NONE
    token_field: str | None = None  # key into the api key table
    header_name: str | None = None  # api-key header, X-API-Key when unset


@dataclass
class HttpConfig:
    """Request template for an http node."""
    method: str = "GET"
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body_template: str | None = None
    # output name -> dotted path into the JSON response ("" = whole document)
    response_mapping: dict[str, str] | None = None
    authentication: HttpAuth | None = None


@dataclass
class WebhookConfig:
    path: str = ""
    method: str = "POST"
    response_template: str | None = None


@dataclass
class CodeConfig:
    language: str = "javascript"
    code: str = ""


@dataclass
class ApiEndpoint:
    name: str
    path: str
    method: str = "POST"
    body_template: str | None = None


@dataclass
class CustomApiConfig:
    base_url: str = ""
    api_key_field: str | None = None
    endpoints: list[ApiEndpoint] = field(default_factory=list)


@dataclass
class CustomNodeConfig:
    """
    A user-defined node kind.

    Exactly one of the behaviour configs is expected, matching
    ``node_type``. The serialized form uses the camelCase keys of the
    custom node store file.
    """
    id: str
    name: str
    node_type: CustomNodeType
    inputs: list[CustomPort] = field(default_factory=list)
    outputs: list[CustomPort] = field(default_factory=list)
    description: str = ""
    category: str = "custom"
    http: HttpConfig | None = None
    webhook: WebhookConfig | None = None
    code: CodeConfig | None = None
    custom_api: CustomApiConfig | None = None

    @property
    def kind(self) -> str:
        return CUSTOM_KIND_PREFIX + self.id

    @classmethod
    def from_dict(cls, data: dict) -> CustomNodeConfig:
        """
        Build a config from its stored form.

        Raises:
            KeyError: A required key is missing
            ValueError: ``nodeType`` or an auth type is unknown
        """
        config = cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            node_type=CustomNodeType(data["nodeType"]),
            inputs=[CustomPort.from_dict(p) for p in data.get("inputs", [])],
            outputs=[CustomPort.from_dict(p) for p in data.get("outputs", [])],
            description=data.get("description", ""),
            category=data.get("category") or "custom",
        )

        http = data.get("httpConfig")
        if http:
            auth = http.get("authentication")
            config.http = HttpConfig(
                method=str(http.get("method", "GET")).upper(),
                url=http.get("url", ""),
                headers=dict(http.get("headers") or {}),
                body_template=http.get("bodyTemplate"),
                response_mapping=http.get("responseMapping"),
                authentication=HttpAuth(
                    type=AuthType(auth.get("type", "none")),
                    token_field=auth.get("tokenField"),
                    header_name=auth.get("headerName"),
                ) if auth else None,
            )

        webhook = data.get("webhookConfig")
        if webhook:
            config.webhook = WebhookConfig(
                path=webhook.get("path", ""),
                method=str(webhook.get("method", "POST")).upper(),
                response_template=webhook.get("responseTemplate"),
            )

        code = data.get("codeConfig")
        if code:
            config.code = CodeConfig(
                language=code.get("language", "javascript"),
                code=code.get("code", ""),
            )

        api = data.get("customApiConfig")
        if api:
            config.custom_api = CustomApiConfig(
                base_url=api.get("baseUrl", ""),
                api_key_field=api.get("apiKeyField"),
                endpoints=[
                    ApiEndpoint(
                        name=e.get("name", ""),
                        path=e.get("path", ""),
                        method=str(e.get("method", "POST")).upper(),
                        body_template=e.get("bodyTemplate"),
                    )
                    for e in api.get("endpoints", [])
                ],
            )

        return config

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "nodeType": self.node_type.value,
            "inputs": [p.to_dict() for p in self.inputs],
            "outputs": [p.to_dict() for p in self.outputs],
        }
        if self.http:
            http: dict[str, Any] = {"method": self.http.method, "url": self.http.url}
            if self.http.headers:
                http["headers"] = dict(self.http.headers)
            if self.http.body_template is not None:
                http["bodyTemplate"] = self.http.body_template
            if self.http.response_mapping is not None:
                http["responseMapping"] = dict(self.http.response_mapping)
            if self.http.authentication:
                auth = self.http.authentication
                http["authentication"] = {
                    "type": auth.type.value,
                    "tokenField": auth.token_field,
                    "headerName": auth.header_name,
                }
            data["httpConfig"] = http
        if self.webhook:
            data["webhookConfig"] = {
                "path": self.webhook.path,
                "method": self.webhook.method,
                "responseTemplate": self.webhook.response_template,
            }
        if self.code:
            data["codeConfig"] = {"language": self.code.language, "code": self.code.code}
        if self.custom_api:
            data["customApiConfig"] = {
                "baseUrl": self.custom_api.base_url,
                "apiKeyField": self.custom_api.api_key_field,
                "endpoints": [
                    {
                        "name": e.name,
                        "path": e.path,
                        "method": e.method,
                        "bodyTemplate": e.body_template,
                    }
                    for e in self.custom_api.endpoints
                ],
            }
        return data


def _category(value: str) -> NodeCategory:
    try:
        return NodeCategory(value)
    except ValueError:
        return NodeCategory.CUSTOM


def custom_node_to_definition(config: CustomNodeConfig) -> NodeDefinition:
    """Turn a custom node config into a registrable definition."""
    default_data: dict[str, Any] = {
        CUSTOM_ID_FIELD: config.id,
        CUSTOM_TYPE_FIELD: config.node_type.value,
    }
    for p in config.inputs:
        if p.default is not None:
            default_data[p.name] = p.default

    return NodeDefinition(
        kind=config.kind,
        name=config.name,
        category=_category(config.category),
        inputs=tuple(PortSpec(name=p.name, type=p.type) for p in config.inputs),
        outputs=tuple(PortSpec(name=p.name, type=p.type) for p in config.outputs),
        default_data=default_data,
        description=config.description or "Custom node",
    )


class CustomNodeStore:
    """
    Persistent list of custom node configs.

    The file is a JSON array of configs. Entries that fail to parse are
    logged and skipped on load.
    """

    def __init__(self, path: Path | None = None):
        self.path = path or CUSTOM_NODES_PATH
        self._configs: dict[str, CustomNodeConfig] = {}

    def load(self) -> list[CustomNodeConfig]:
        """Load configs from disk. A missing file yields an empty store."""
        self._configs.clear()
        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                entries = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load custom nodes from {self.path}: {e}")
            return []

        if not isinstance(entries, list):
            logger.warning("Custom node file %s does not hold a list", self.path)
            return []

        for entry in entries:
            try:
                config = CustomNodeConfig.from_dict(entry)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping invalid custom node entry: %s", e)
                continue
            self._configs[config.id] = config

        return self.configs

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump([c.to_dict() for c in self._configs.values()], f, indent=2, ensure_ascii=False)

    def add(self, config: CustomNodeConfig, save: bool = True) -> None:
        """Add a config, replacing one with the same id."""
        self._configs[config.id] = config
        if save:
            self.save()

    def remove(self, config_id: str, save: bool = True) -> CustomNodeConfig | None:
        config = self._configs.pop(config_id, None)
        if config and save:
            self.save()
        return config

    def get(self, config_id: str) -> CustomNodeConfig | None:
        return self._configs.get(config_id)

    def get_by_kind(self, kind: str) -> CustomNodeConfig | None:
        if not kind.startswith(CUSTOM_KIND_PREFIX):
            return None
        return self._configs.get(kind[len(CUSTOM_KIND_PREFIX):])

    @property
    def configs(self) -> list[CustomNodeConfig]:
        return list(self._configs.values())

    def definitions(self) -> list[NodeDefinition]:
        return [custom_node_to_definition(c) for c in self._configs.values()]

    def register_all(self, registry: NodeRegistry) -> int:
        """Register every stored custom node. Returns the number registered."""
        definitions = self.definitions()
        for definition in definitions:
            registry.register(definition)
        return len(definitions)


# Ready-made starting points for new custom nodes
CUSTOM_NODE_TEMPLATES: list[dict[str, Any]] = [
    {
        "id": "http-get-template",
        "name": "HTTP GET",
        "description": "Send a GET request to any URL",
        "nodeType": "http",
        "inputs": [
            {"name": "URL", "type": "text", "required": True},
            {"name": "参数", "type": "text"},
        ],
        "outputs": [{"name": "响应", "type": "text"}],
        "httpConfig": {
            "method": "GET",
            "url": "{{URL}}",
            "responseMapping": {"响应": ""},
        },
    },
    {
        "id": "http-post-template",
        "name": "HTTP POST",
        "description": "Send a POST request with a JSON body",
        "nodeType": "http",
        "inputs": [
            {"name": "URL", "type": "text", "required": True},
            {"name": "请求体", "type": "text"},
        ],
        "outputs": [{"name": "响应", "type": "text"}],
        "httpConfig": {
            "method": "POST",
            "url": "{{URL}}",
            "bodyTemplate": "{{请求体}}",
            "responseMapping": {"响应": ""},
        },
    },
    {
        "id": "openai-compatible-template",
        "name": "OpenAI-compatible API",
        "description": "Chat completion against an OpenAI-compatible server (Ollama, vLLM)",
        "nodeType": "http",
        "inputs": [
            {"name": "提示词", "type": "text", "required": True},
            {"name": "系统提示", "type": "text", "default": "You are a helpful assistant."},
        ],
        "outputs": [{"name": "回复", "type": "text"}],
        "httpConfig": {
            "method": "POST",
            "url": "http://localhost:11434/v1/chat/completions",
            "headers": {"Content-Type": "application/json"},
            "bodyTemplate": json.dumps({
                "model": "llama2",
                "messages": [
                    {"role": "system", "content": "{{系统提示}}"},
                    {"role": "user", "content": "{{提示词}}"},
                ],
            }, ensure_ascii=False),
            "responseMapping": {"回复": "choices.0.message.content"},
        },
    },
    {
        "id": "sd-webui-template",
        "name": "SD WebUI API",
        "description": "Call a local Stable Diffusion WebUI txt2img endpoint",
        "nodeType": "http",
        "inputs": [
            {"name": "提示词", "type": "text", "required": True},
            {"name": "负面提示词", "type": "text", "default": ""},
            {"name": "宽度", "type": "text", "default": "512"},
            {"name": "高度", "type": "text", "default": "512"},
        ],
        "outputs": [{"name": "图像", "type": "image"}],
        "httpConfig": {
            "method": "POST",
            "url": "http://127.0.0.1:7860/sdapi/v1/txt2img",
            "bodyTemplate": json.dumps({
                "prompt": "{{提示词}}",
                "negative_prompt": "{{负面提示词}}",
                "width": "{{宽度}}",
                "height": "{{高度}}",
                "steps": 20,
            }, ensure_ascii=False),
            "responseMapping": {"图像": "images.0"},
        },
    },
]


def get_template(template_id: str) -> CustomNodeConfig | None:
    """Get a fresh config built from a named template."""
    for template in CUSTOM_NODE_TEMPLATES:
        if template["id"] == template_id:
            return CustomNodeConfig.from_dict(template)
    return None
