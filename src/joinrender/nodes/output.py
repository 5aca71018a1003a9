"""
Output Nodes - Terminal nodes that collect results.

Output nodes have no output ports. Their handlers return the collected
value under ``result`` so a run's output map holds the final artifacts.
"""

from __future__ import annotations

from typing import Any

from joinrender.core.data_types import PortType
from joinrender.core.execution import ExecutionContext
from joinrender.core.media import image_to_data_url, is_image_value
from joinrender.core.node_types import NodeCategory
from joinrender.nodes.base import NodeHandler, builtin, port

SHOTS = ("镜头 1", "镜头 2", "镜头 3")


IMAGE_OUTPUT_NODE = builtin(
    "image-output",
    "Image Output",
    NodeCategory.OUTPUT,
    inputs=[port("图像", PortType.IMAGE)],
    default_data={"format": "png", "quality": 90},
    description="Preview or save an image",
)

VIDEO_OUTPUT_NODE = builtin(
    "video-output",
    "Video Output",
    NodeCategory.OUTPUT,
    inputs=[port("视频", PortType.VIDEO)],
    default_data={"format": "mp4", "quality": "high"},
)

STORYBOARD_OUTPUT_NODE = builtin(
    "storyboard-output",
    "Storyboard Output",
    NodeCategory.OUTPUT,
    inputs=[port(name, PortType.IMAGE) for name in SHOTS],
    default_data={"layout": "horizontal"},
    description="Collect three shots into a storyboard",
)

AUDIO_OUTPUT_NODE = builtin(
    "audio-output",
    "Audio Output",
    NodeCategory.OUTPUT,
    inputs=[port("音频", PortType.AUDIO)],
    default_data={"format": "mp3"},
)

MODEL3D_OUTPUT_NODE = builtin(
    "3d-output",
    "3D Model Output",
    NodeCategory.OUTPUT,
    inputs=[port("3D模型", PortType.MODEL3D)],
    default_data={"format": "glb"},
)


def _collect(input_name: str) -> NodeHandler:
    async def handler(inputs: dict[str, Any], context: ExecutionContext) -> dict[str, Any]:
        return {"result": inputs.get(input_name) or ""}
    return handler


async def image_output_handler(inputs: dict[str, Any], context: ExecutionContext) -> dict[str, Any]:
    """Collect an image; PIL images and pixel arrays are encoded as data URLs."""
    image = inputs.get("图像")
    if is_image_value(image):
        image_format = str(inputs.get("format") or "png")
        context.report_progress(50, f"encoding {image_format}")
        return {"result": image_to_data_url(image, format=image_format)}
    return {"result": image or ""}


async def storyboard_handler(inputs: dict[str, Any], context: ExecutionContext) -> dict[str, Any]:
    return {
        "result": {
            f"shot{index}": inputs.get(name) or ""
            for index, name in enumerate(SHOTS, start=1)
        }
    }


OUTPUT_NODES = [
    IMAGE_OUTPUT_NODE,
    VIDEO_OUTPUT_NODE,
    STORYBOARD_OUTPUT_NODE,
    AUDIO_OUTPUT_NODE,
    MODEL3D_OUTPUT_NODE,
]

OUTPUT_HANDLERS: dict[str, NodeHandler] = {
    "image-output": image_output_handler,
    "video-output": _collect("视频"),
    "storyboard-output": storyboard_handler,
    "audio-output": _collect("音频"),
    "3d-output": _collect("3D模型"),
}
