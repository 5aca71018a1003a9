"""
HTTP executor - Runs user-defined custom nodes.

Supports:
- http: templated request, optional auth, dotted-path response mapping
- webhook: reports the endpoint the node is bound to
- custom-api: calls the first configured endpoint
- code: rejected, there is no sandbox to run stored code in

It also runs the built-in http-request node (method, headers and timeout
from literal data) and the webhook-trigger node.

Templates use ``{{name}}`` placeholders filled from the node's inputs. In
URLs the value is percent-encoded, except when the placeholder is the whole
URL. In body templates it is inserted as JSON; a placeholder that forms a
whole JSON string (``"{{name}}"``) is replaced together with its quotes.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any
from urllib.parse import quote

import aiohttp

from joinrender.core.execution import ExecutionContext
from joinrender.executors.base import (
    CapabilityNotFoundError,
    ExecutorConfig,
    ExecutorError,
    check_status,
)
from joinrender.nodes.base import get_value_by_path
from joinrender.nodes.custom import (
    CUSTOM_ID_FIELD,
    AuthType,
    CustomNodeConfig,
    CustomNodeStore,
    CustomNodeType,
)
from joinrender.nodes.integration import HTTP_REQUEST_KIND, WEBHOOK_TRIGGER_KIND

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "响应"
DEFAULT_API_KEY_HEADER = "X-API-Key"
DEFAULT_TIMEOUT_MS = 30000
BUILTIN_KINDS = frozenset({HTTP_REQUEST_KIND, WEBHOOK_TRIGGER_KIND})

_URL_PLACEHOLDER = re.compile(r"\{\{([^{}]+)\}\}")
_BODY_PLACEHOLDER = re.compile(r'"\{\{([^{}]+)\}\}"|\{\{([^{}]+)\}\}')


def render_url(template: str, values: dict[str, Any]) -> str:
    """
    Fill ``{{name}}`` placeholders with percent-encoded values.

    A template that is a single placeholder takes the value verbatim, so an
    input can carry a complete URL. Unknown names are left as-is.
    """
    whole = _URL_PLACEHOLDER.fullmatch(template.strip())

    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in values:
            return match.group(0)
        value = values[key]
        text = "" if value is None else str(value)
        return text if whole else quote(text, safe="")

    return _URL_PLACEHOLDER.sub(replace, template)


def render_body(template: str, values: dict[str, Any]) -> str:
    """Fill ``{{name}}`` placeholders with JSON values."""
    def replace(match: re.Match) -> str:
        key = match.group(1) or match.group(2)
        if key not in values:
            return match.group(0)
        return json.dumps(values[key], ensure_ascii=False)

    return _BODY_PLACEHOLDER.sub(replace, template)


def _parse_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


class HttpNodeExecutor:
    """
    Executes custom nodes from a CustomNodeStore.

    Acts as a delegate of DispatchExecutor: ``handles`` is true for every
    ``custom-<id>`` kind the store knows, and for the built-in
    ``http-request`` and ``webhook-trigger`` kinds.
    """

    def __init__(self, store: CustomNodeStore, config: ExecutorConfig | None = None):
        self.store = store
        self.config = config or ExecutorConfig()

    def handles(self, node_kind: str) -> bool:
        return node_kind in BUILTIN_KINDS or self.store.get_by_kind(node_kind) is not None

    async def invoke(
        self,
        node_kind: str,
        inputs: dict[str, Any],
        context: ExecutionContext,
    ) -> dict[str, Any]:
        if node_kind == HTTP_REQUEST_KIND:
            return await self._execute_http_request(inputs, context)
        if node_kind == WEBHOOK_TRIGGER_KIND:
            return self._execute_webhook_trigger(inputs)

        config = self.store.get_by_kind(node_kind)
        if config is None and inputs.get(CUSTOM_ID_FIELD):
            config = self.store.get(str(inputs[CUSTOM_ID_FIELD]))
        if config is None:
            raise CapabilityNotFoundError(node_kind)
        return await self.execute(config, inputs, context)

    async def execute(
        self,
        config: CustomNodeConfig,
        inputs: dict[str, Any],
        context: ExecutionContext | None = None,
    ) -> dict[str, Any]:
        """Run one custom node config against resolved inputs."""
        if config.node_type == CustomNodeType.HTTP:
            return await self._execute_http(config, inputs, context)
        elif config.node_type == CustomNodeType.WEBHOOK:
            return self._execute_webhook(config, inputs)
        elif config.node_type == CustomNodeType.CUSTOM_API:
            return await self._execute_custom_api(config, inputs, context)
        elif config.node_type == CustomNodeType.CODE:
            raise ExecutorError(f"Code nodes are not supported: {config.name}")
        raise ExecutorError(f"Unknown custom node type: {config.node_type}")

    # -------------------------------------------------------------------------
    # Node types
    # -------------------------------------------------------------------------

    async def _execute_http(
        self,
        config: CustomNodeConfig,
        inputs: dict[str, Any],
        context: ExecutionContext | None,
    ) -> dict[str, Any]:
        http = config.http
        if http is None:
            raise ExecutorError(f"HTTP config missing for custom node {config.id}")

        url = render_url(http.url, inputs)
        headers = {"Content-Type": "application/json", **http.headers}
        auth = None

        if http.authentication:
            token = self._api_key(http.authentication.token_field)
            if http.authentication.type == AuthType.BEARER and token:
                headers["Authorization"] = f"Bearer {token}"
            elif http.authentication.type == AuthType.API_KEY and token:
                headers[http.authentication.header_name or DEFAULT_API_KEY_HEADER] = token
            elif http.authentication.type == AuthType.BASIC and token:
                login, _, password = token.partition(":")
                auth = aiohttp.BasicAuth(login, password)

        body = None
        if http.method != "GET" and http.body_template:
            body = render_body(http.body_template, inputs)

        _report(context, 30, f"{http.method} {url}")
        data = await self._request(http.method, url, headers, body, auth, label="HTTP request")
        _report(context, 90, "mapping response")

        if http.response_mapping is None:
            return {DEFAULT_OUTPUT: data}

        mapped = {
            name: get_value_by_path(data, path)
            for name, path in http.response_mapping.items()
        }
        return _in_port_order(config, mapped)

    def _execute_webhook(self, config: CustomNodeConfig, inputs: dict[str, Any]) -> dict[str, Any]:
        webhook = config.webhook
        if webhook is None:
            raise ExecutorError(f"Webhook config missing for custom node {config.id}")

        return {
            "webhookUrl": self._webhook_url(webhook.path),
            "method": webhook.method,
            **{k: v for k, v in inputs.items() if not k.startswith("_")},
        }

    async def _execute_http_request(
        self,
        inputs: dict[str, Any],
        context: ExecutionContext | None,
    ) -> dict[str, Any]:
        """
        Built-in HTTP request node.

        Any status is a result: the body goes to ``响应`` (JSON documents
        re-serialized with indentation) and the status to ``状态码``.
        Connection failures and timeouts fail the node.
        """
        url = str(inputs.get("URL") or "").strip()
        if not url:
            raise ExecutorError("HTTP request node has no URL")

        method = str(inputs.get("method") or "GET").upper()
        headers = {"Content-Type": "application/json", **_parse_headers(inputs.get("headers"))}
        body = inputs.get("请求体")
        if method == "GET" or body is None:
            body = None
        elif not isinstance(body, str):
            body = json.dumps(body, ensure_ascii=False)

        _report(context, 30, f"{method} {url}")
        status, text = await self._send(
            method, url, headers, body,
            timeout=_timeout(inputs.get("timeout")),
            label="HTTP request",
        )
        data = _parse_body(text)
        if isinstance(data, (dict, list)):
            data = json.dumps(data, ensure_ascii=False, indent=2)
        return {"响应": "" if data is None else data, "状态码": str(status)}

    def _execute_webhook_trigger(self, inputs: dict[str, Any]) -> dict[str, Any]:
        return {
            "数据": {"message": "Webhook configured, waiting for calls"},
            "Headers": json.dumps({"Content-Type": "application/json"}),
            "webhookUrl": self._webhook_url(str(inputs.get("path") or "my-webhook")),
            "method": str(inputs.get("method") or "POST"),
        }

    async def _execute_custom_api(
        self,
        config: CustomNodeConfig,
        inputs: dict[str, Any],
        context: ExecutionContext | None,
    ) -> dict[str, Any]:
        api = config.custom_api
        if api is None:
            raise ExecutorError(f"API config missing for custom node {config.id}")
        if not api.endpoints:
            raise ExecutorError(f"No API endpoint configured for custom node {config.id}")

        endpoint = api.endpoints[0]
        url = render_url(f"{api.base_url}{endpoint.path}", inputs)
        headers = {"Content-Type": "application/json"}
        token = self._api_key(api.api_key_field)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        body = None
        if endpoint.method != "GET" and endpoint.body_template:
            body = render_body(endpoint.body_template, inputs)

        _report(context, 30, f"{endpoint.method} {url}")
        data = await self._request(endpoint.method, url, headers, body, label="API request")
        return {DEFAULT_OUTPUT: data}

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _api_key(self, field_name: str | None) -> str:
        if not field_name:
            return ""
        return self.config.api_keys.get(field_name, "")

    def _webhook_url(self, path: str) -> str:
        base = self.config.webhook_base_url.rstrip("/")
        return f"{base}/webhook/{path.lstrip('/')}"

    async def _request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: str | None,
        auth: aiohttp.BasicAuth | None = None,
        label: str = "HTTP request",
    ) -> Any:
        """Send one request and return the decoded JSON (or raw text) body."""
        status, text = await self._send(method, url, headers, body, auth=auth, label=label)
        check_status(status, text, label)
        return _parse_body(text)

    async def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: str | None,
        auth: aiohttp.BasicAuth | None = None,
        timeout: aiohttp.ClientTimeout | None = None,
        label: str = "HTTP request",
    ) -> tuple[int, str]:
        """Send one request and return the status and body text."""
        logger.debug("%s %s", method, url)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(
                    method,
                    url,
                    headers=headers,
                    data=body.encode("utf-8") if body is not None else None,
                    auth=auth,
                ) as resp:
                    return resp.status, await resp.text()
        except asyncio.TimeoutError as e:
            raise ExecutorError(f"{label} to {url} timed out") from e
        except aiohttp.ClientError as e:
            raise ExecutorError(f"{label} to {url} failed: {e}") from e


def _in_port_order(config: CustomNodeConfig, values: dict[str, Any]) -> dict[str, Any]:
    # Positional threading reads outputs in port order
    ordered = {p.name: values[p.name] for p in config.outputs if p.name in values}
    for name, value in values.items():
        ordered.setdefault(name, value)
    return ordered


def _report(context: ExecutionContext | None, percent: int, message: str) -> None:
    if context is not None:
        context.report_progress(percent, message)


def _parse_headers(value: Any) -> dict[str, str]:
    """Headers given as a JSON object string or a mapping."""
    if value is None or value == "":
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError as e:
            raise ExecutorError(f"Invalid headers JSON: {e}") from e
    if not isinstance(value, dict):
        raise ExecutorError("Headers must be a JSON object")
    return {str(k): str(v) for k, v in value.items()}


def _timeout(value: Any) -> aiohttp.ClientTimeout:
    """Request timeout from a millisecond value."""
    try:
        ms = float(value) if value is not None else DEFAULT_TIMEOUT_MS
    except (TypeError, ValueError):
        ms = DEFAULT_TIMEOUT_MS
    if ms <= 0:
        ms = DEFAULT_TIMEOUT_MS
    return aiohttp.ClientTimeout(total=ms / 1000)
