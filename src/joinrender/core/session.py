"""
Workflow Session - One graph with its registry and scheduler.

A session owns everything needed to edit and run one workflow:
- The node registry (built-ins, interchange plugins, custom nodes)
- The plugin manager and custom node store feeding that registry
- The graph being edited
- The execution engine and its capability executor

Loading, importing and clearing replace or reset the graph as a unit.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from numpy.typing import NDArray
from PIL import Image

from joinrender.core.execution import (
    CapabilityExecutor,
    ExecutionCallbacks,
    ExecutionEngine,
)
from joinrender.core.graph import NodeGraph, NodeId
from joinrender.core.media import file_to_data_url, image_to_data_url, is_image_value
from joinrender.core.node_types import NodeRegistry
from joinrender.core.settings import EngineSettings
from joinrender.core.validation import ValidationResult, validate_workflow
from joinrender.core.workflow_io import (
    WorkflowFormat,
    export_workflow,
    import_workflow,
    load_workflow,
    save_workflow,
)
from joinrender.executors import DispatchExecutor, ExecutorConfig, HttpNodeExecutor
from joinrender.interchange.plugins import PluginManager
from joinrender.nodes import builtin_handlers, register_builtin_nodes
from joinrender.nodes.custom import CustomNodeConfig, CustomNodeStore, custom_node_to_definition
from joinrender.templates import get_template

logger = logging.getLogger(__name__)


class WorkflowSession:
    """
    Holds the current workflow and everything it runs against.

    Args:
        settings: Engine settings; defaults when omitted
        executor: Capability executor. When omitted, a DispatchExecutor
            with the built-in local handlers and the custom HTTP node
            executor is used.
        load_user_nodes: Also load the custom node store and the plugin
            directory named in the settings
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        executor: CapabilityExecutor | None = None,
        load_user_nodes: bool = False,
        name: str = "Untitled",
    ):
        self.settings = settings or EngineSettings()

        self.registry = NodeRegistry()
        register_builtin_nodes(self.registry)
        self.plugins = PluginManager(self.registry)
        self.plugins.register_builtin_plugins()
        self.custom_nodes = CustomNodeStore(self.settings.custom_nodes_path)

        if load_user_nodes:
            self.custom_nodes.load()
            self.custom_nodes.register_all(self.registry)
            self.plugins.load_plugin_dir(self.settings.plugin_dir)

        if executor is None:
            executor = DispatchExecutor(
                handlers=builtin_handlers(),
                delegates=[
                    HttpNodeExecutor(
                        self.custom_nodes,
                        ExecutorConfig(
                            api_keys=dict(self.settings.api_keys),
                            webhook_base_url=self.settings.webhook_base_url,
                        ),
                    )
                ],
            )

        self.engine = ExecutionEngine(
            executor,
            cycle_policy=self.settings.cycle_policy,
            threading_mode=self.settings.threading_mode,
        )
        self.graph = NodeGraph(self.registry, name)
        self.path: Path | None = None

    # -------------------------------------------------------------------------
    # Graph lifecycle
    # -------------------------------------------------------------------------

    def new(self, name: str = "Untitled") -> NodeGraph:
        """Start an empty workflow."""
        self.graph = NodeGraph(self.registry, name)
        self.engine.reset()
        self.path = None
        return self.graph

    def clear(self) -> None:
        """Remove every node and connection and forget run results."""
        self.graph.clear()
        self.engine.reset()

    def load(self, path: Path) -> NodeGraph:
        """Replace the graph with a workflow file in either format."""
        self.graph = load_workflow(path, self.registry)
        self.engine.reset()
        self.path = path
        return self.graph

    def import_text(self, text: str | dict[str, Any]) -> NodeGraph:
        """Replace the graph with a workflow document in either format."""
        self.graph = import_workflow(text, self.registry)
        self.engine.reset()
        return self.graph

    def load_template(self, template_id: str) -> NodeGraph:
        """Replace the graph with a copy of a built-in template."""
        self.graph = import_workflow(get_template(template_id).to_snapshot(), self.registry)
        self.engine.reset()
        self.path = None
        return self.graph

    def save(self, path: Path | None = None, fmt: WorkflowFormat = WorkflowFormat.NATIVE) -> Path:
        path = path or self.path
        if path is None:
            raise ValueError("No path given for an unsaved workflow")
        save_workflow(self.graph, path, fmt)
        if fmt == WorkflowFormat.NATIVE:
            self.path = path
        return path

    def export(self, fmt: WorkflowFormat = WorkflowFormat.NATIVE) -> dict[str, Any]:
        return export_workflow(self.graph, fmt)

    # -------------------------------------------------------------------------
    # Custom nodes
    # -------------------------------------------------------------------------

    def add_custom_node(self, config: CustomNodeConfig, persist: bool = True) -> str:
        """Store and register a custom node. Returns its kind."""
        self.custom_nodes.add(config, save=persist)
        definition = custom_node_to_definition(config)
        self.registry.register(definition)
        return definition.kind

    def remove_custom_node(self, config_id: str, persist: bool = True) -> None:
        """
        Forget a custom node kind.

        Nodes of that kind already in the graph stay; the validator and
        the executor report them.
        """
        config = self.custom_nodes.remove(config_id, save=persist)
        if config is not None:
            self.registry.unregister(config.kind)

    # -------------------------------------------------------------------------
    # Media
    # -------------------------------------------------------------------------

    def attach_image(
        self,
        node_id: NodeId,
        image: Path | str | Image.Image | NDArray,
        file_name: str | None = None,
    ) -> None:
        """
        Embed an image into an image-upload node.

        ``image`` is a file path, a PIL image or a pixel array. Files keep
        their bytes; in-memory images are encoded as PNG.
        """
        if is_image_value(image):
            url = image_to_data_url(image)
            name = file_name or "image.png"
        else:
            url = file_to_data_url(image)
            name = file_name or Path(image).name
        self.graph.set_literal_data(node_id, {"imageUrl": url, "fileName": name})

    # -------------------------------------------------------------------------
    # Validation and execution
    # -------------------------------------------------------------------------

    def validate(self) -> ValidationResult:
        return validate_workflow(self.graph, self.registry)

    async def run(self, callbacks: ExecutionCallbacks | None = None) -> dict[NodeId, dict[str, Any]]:
        """Run the current graph. See ExecutionEngine.run."""
        result = await self.engine.run(self.graph, callbacks)
        logger.info("Run finished: %d of %d nodes produced output", len(result), len(self.graph))
        return result
