"""
Nodes package - Built-in node definitions.

This package contains node definitions organized by category:
- input: Text and media uploads
- llm: Prompt analysis, enhancement and JSON splitting
- media: Image and video generation
- audio: Speech and music
- model3d: 3D generation and rendering
- logic: JSON handling, data mapping and flow helpers
- integration: Generic HTTP requests, webhooks and self-hosted servers
- output: Result collectors
- custom: User-defined HTTP nodes

Kinds with a local handler run without any provider; the rest are routed
to a capability executor.
"""

from joinrender.core.node_types import NodeDefinition, NodeRegistry
from joinrender.nodes.audio import AUDIO_NODES
from joinrender.nodes.base import NodeHandler, native_class
from joinrender.nodes.input import INPUT_HANDLERS, INPUT_NODES
from joinrender.nodes.integration import INTEGRATION_NODES
from joinrender.nodes.llm import LLM_HANDLERS, LLM_NODES
from joinrender.nodes.logic import LOGIC_HANDLERS, LOGIC_NODES
from joinrender.nodes.media import MEDIA_NODES
from joinrender.nodes.model3d import MODEL3D_NODES
from joinrender.nodes.output import OUTPUT_HANDLERS, OUTPUT_NODES


BUILTIN_NODES: list[NodeDefinition] = [
    *INPUT_NODES,
    *LLM_NODES,
    *MEDIA_NODES,
    *AUDIO_NODES,
    *MODEL3D_NODES,
    *LOGIC_NODES,
    *INTEGRATION_NODES,
    *OUTPUT_NODES,
]


def register_builtin_nodes(registry: NodeRegistry) -> None:
    """Register all built-in node definitions."""
    for definition in BUILTIN_NODES:
        registry.register(definition)


def builtin_handlers() -> dict[str, NodeHandler]:
    """Local handlers for the built-in kinds that need no provider."""
    return {**INPUT_HANDLERS, **LLM_HANDLERS, **LOGIC_HANDLERS, **OUTPUT_HANDLERS}


__all__ = [
    "BUILTIN_NODES",
    "NodeHandler",
    "builtin_handlers",
    "native_class",
    "register_builtin_nodes",
]
