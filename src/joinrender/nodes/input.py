"""
Input Nodes - Workflow entry points.

These carry text or uploaded media into the graph. Each one runs locally by
copying a literal field to its single output.
"""

from __future__ import annotations

from typing import Any

from joinrender.core.data_types import PortType
from joinrender.core.execution import ExecutionContext
from joinrender.core.node_types import NodeCategory
from joinrender.nodes.base import NodeHandler, builtin, port


TEXT_INPUT_NODE = builtin(
    "text-input",
    "Text Input",
    NodeCategory.INPUT,
    outputs=[port("文本", PortType.TEXT)],
    default_data={"text": ""},
    description="Enter text such as a story excerpt or a character description",
)

IMAGE_UPLOAD_NODE = builtin(
    "image-upload",
    "Image Upload",
    NodeCategory.INPUT,
    outputs=[port("图像", PortType.IMAGE)],
    default_data={"imageUrl": "", "fileName": ""},
    description="Upload an image file",
)

VIDEO_UPLOAD_NODE = builtin(
    "video-upload",
    "Video Upload",
    NodeCategory.INPUT,
    outputs=[port("视频", PortType.VIDEO)],
    default_data={"videoUrl": "", "fileName": ""},
    description="Upload a video file",
)

AUDIO_UPLOAD_NODE = builtin(
    "audio-upload",
    "Audio Upload",
    NodeCategory.INPUT,
    outputs=[port("音频", PortType.AUDIO)],
    default_data={"audioUrl": "", "fileName": ""},
    description="Upload an audio file",
)

MODEL3D_UPLOAD_NODE = builtin(
    "3d-model-upload",
    "3D Model Upload",
    NodeCategory.INPUT,
    outputs=[port("3D模型", PortType.MODEL3D)],
    default_data={"modelUrl": "", "fileName": ""},
    description="Upload a 3D model file",
)


def _passthrough(field: str, output: str) -> NodeHandler:
    async def handler(inputs: dict[str, Any], context: ExecutionContext) -> dict[str, Any]:
        return {output: inputs.get(field) or ""}
    return handler


INPUT_NODES = [
    TEXT_INPUT_NODE,
    IMAGE_UPLOAD_NODE,
    VIDEO_UPLOAD_NODE,
    AUDIO_UPLOAD_NODE,
    MODEL3D_UPLOAD_NODE,
]

INPUT_HANDLERS: dict[str, NodeHandler] = {
    "text-input": _passthrough("text", "文本"),
    "image-upload": _passthrough("imageUrl", "图像"),
    "video-upload": _passthrough("videoUrl", "视频"),
    "audio-upload": _passthrough("audioUrl", "音频"),
    "3d-model-upload": _passthrough("modelUrl", "3D模型"),
}
