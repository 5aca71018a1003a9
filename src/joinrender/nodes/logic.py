"""
Logic Nodes - JSON handling, data mapping and flow helpers.

All of these run locally. ``loop`` emits only the first item of its array;
the engine runs every node once per run, so there is no iteration.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from joinrender.core.data_types import PortType
from joinrender.core.execution import ExecutionContext
from joinrender.core.node_types import NodeCategory
from joinrender.nodes.base import NodeHandler, builtin, get_value_by_path, port

logger = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 1000
MAPPER_INPUT = "输入数据"


JSON_PARSE_NODE = builtin(
    "json-parse",
    "JSON Parse",
    NodeCategory.LOGIC,
    inputs=[port("JSON文本", PortType.TEXT)],
    outputs=[port("对象")],
    description="Parse a JSON string into an object",
)

JSON_STRINGIFY_NODE = builtin(
    "json-stringify",
    "JSON Stringify",
    NodeCategory.LOGIC,
    inputs=[port("对象")],
    outputs=[port("JSON文本", PortType.TEXT)],
    default_data={"pretty": True},
    description="Serialize an object as a JSON string",
)

DATA_MAPPER_NODE = builtin(
    "data-mapper",
    "Data Mapper",
    NodeCategory.LOGIC,
    inputs=[port(MAPPER_INPUT)],
    outputs=[port("输出数据")],
    default_data={"mapping": '{\n  "field": "输入数据.name"\n}'},
    description="Build a new object from dotted paths into the input",
)

LOOP_NODE = builtin(
    "loop",
    "Loop",
    NodeCategory.LOGIC,
    inputs=[port("数组")],
    outputs=[port("当前项"), port("索引", PortType.TEXT)],
    description="Emit the first item of an array and its index",
)

AGGREGATE_NODE = builtin(
    "aggregate",
    "Aggregate",
    NodeCategory.LOGIC,
    inputs=[port("项目")],
    outputs=[port("数组")],
    description="Wrap a value in an array",
)

DELAY_NODE = builtin(
    "delay",
    "Delay",
    NodeCategory.LOGIC,
    inputs=[port("输入")],
    outputs=[port("输出")],
    default_data={"delay": DEFAULT_DELAY_MS},
    description="Pass a value on after a pause in milliseconds",
)


def _load_json(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return None


async def json_parse_handler(inputs: dict[str, Any], context: ExecutionContext) -> dict[str, Any]:
    """Invalid JSON gives None; values that are already objects pass through."""
    return {"对象": _load_json(inputs.get("JSON文本") or "{}")}


async def json_stringify_handler(inputs: dict[str, Any], context: ExecutionContext) -> dict[str, Any]:
    pretty = inputs.get("pretty", True)
    if isinstance(pretty, str):
        pretty = pretty.strip().lower() not in ("false", "0", "no", "off")
    text = json.dumps(inputs.get("对象"), ensure_ascii=False, indent=2 if pretty else None, default=str)
    return {"JSON文本": text}


async def data_mapper_handler(inputs: dict[str, Any], context: ExecutionContext) -> dict[str, Any]:
    """
    Map output fields to dotted paths into the input data.

    A path may start with the input's own name, so ``输入数据.user.name``
    and ``user.name`` select the same value. An unreadable mapping passes
    the input through unchanged.
    """
    context.report_progress(30, "mapping data")
    data = inputs.get(MAPPER_INPUT)
    mapping = _load_json(inputs.get("mapping") or "{}")
    if not isinstance(mapping, dict):
        logger.warning("Data mapper has no usable mapping, passing input through")
        return {"输出数据": data}

    mapped = {}
    for field, path in mapping.items():
        if not isinstance(path, str):
            mapped[field] = None
            continue
        if path == MAPPER_INPUT:
            path = ""
        elif path.startswith(MAPPER_INPUT + "."):
            path = path[len(MAPPER_INPUT) + 1:]
        mapped[field] = get_value_by_path(data, path)
    return {"输出数据": mapped}


async def loop_handler(inputs: dict[str, Any], context: ExecutionContext) -> dict[str, Any]:
    items = _load_json(inputs.get("数组"))
    if isinstance(items, list) and items:
        return {"当前项": items[0], "索引": "0"}
    return {"当前项": None, "索引": "-1"}


async def aggregate_handler(inputs: dict[str, Any], context: ExecutionContext) -> dict[str, Any]:
    item = inputs.get("项目")
    return {"数组": [] if item is None else [item]}


async def delay_handler(inputs: dict[str, Any], context: ExecutionContext) -> dict[str, Any]:
    try:
        delay_ms = max(0.0, float(inputs.get("delay", DEFAULT_DELAY_MS)))
    except (TypeError, ValueError):
        delay_ms = DEFAULT_DELAY_MS
    context.report_progress(30, f"waiting {delay_ms:g}ms")
    await asyncio.sleep(delay_ms / 1000)
    return {"输出": inputs.get("输入")}


LOGIC_NODES = [
    JSON_PARSE_NODE,
    JSON_STRINGIFY_NODE,
    DATA_MAPPER_NODE,
    LOOP_NODE,
    AGGREGATE_NODE,
    DELAY_NODE,
]

LOGIC_HANDLERS: dict[str, NodeHandler] = {
    "json-parse": json_parse_handler,
    "json-stringify": json_stringify_handler,
    "data-mapper": data_mapper_handler,
    "loop": loop_handler,
    "aggregate": aggregate_handler,
    "delay": delay_handler,
}
