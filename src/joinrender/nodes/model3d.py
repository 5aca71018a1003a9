"""
3D Nodes - Model generation, texturing, rigging and rendering.
"""

from __future__ import annotations

from joinrender.core.data_types import PortType
from joinrender.core.node_types import NodeCategory
from joinrender.nodes.base import builtin, port

MODEL = "3D模型"


TEXT_TO_3D_NODE = builtin(
    "text-to-3d",
    "Text to 3D",
    NodeCategory.MODEL3D,
    inputs=[port("提示词", PortType.TEXT)],
    outputs=[port(MODEL, PortType.MODEL3D)],
    default_data={"quality": "standard", "format": "glb", "provider": "meshy"},
    description="Generate a 3D model from a description",
)

IMAGE_TO_3D_NODE = builtin(
    "image-to-3d",
    "Image to 3D",
    NodeCategory.MODEL3D,
    inputs=[port("图像", PortType.IMAGE)],
    outputs=[port(MODEL, PortType.MODEL3D)],
    default_data={"quality": "standard", "format": "glb", "provider": "meshy"},
    description="Generate a 3D model from a single image",
)

TEXTURE_3D_NODE = builtin(
    "3d-texture",
    "3D Texture",
    NodeCategory.MODEL3D,
    inputs=[port(MODEL, PortType.MODEL3D), port("风格提示词", PortType.TEXT)],
    outputs=[port(MODEL, PortType.MODEL3D)],
    default_data={"resolution": 1024},
)

RIGGING_3D_NODE = builtin(
    "3d-rigging",
    "3D Rigging",
    NodeCategory.MODEL3D,
    inputs=[port(MODEL, PortType.MODEL3D)],
    outputs=[port(MODEL, PortType.MODEL3D)],
    default_data={"type": "humanoid"},
)

ANIMATION_3D_NODE = builtin(
    "3d-animation",
    "3D Animation",
    NodeCategory.MODEL3D,
    inputs=[port(MODEL, PortType.MODEL3D), port("动作描述", PortType.TEXT)],
    outputs=[port("3D动画", PortType.MODEL3D)],
    default_data={"duration": 3, "fps": 30},
)

RENDER_3D_NODE = builtin(
    "3d-render",
    "3D Render",
    NodeCategory.MODEL3D,
    inputs=[port(MODEL, PortType.MODEL3D)],
    outputs=[port("渲染图像", PortType.IMAGE)],
    default_data={"width": 1024, "height": 1024, "camera": "front", "lighting": "studio"},
)

TURNTABLE_3D_NODE = builtin(
    "3d-turntable",
    "3D Turntable",
    NodeCategory.MODEL3D,
    inputs=[port(MODEL, PortType.MODEL3D)],
    outputs=[port("视频", PortType.VIDEO)],
    default_data={"duration": 5, "fps": 30},
    description="Render a 360 degree turntable video",
)


def _provider_3d(kind: str, name: str, inputs: list, default_data: dict, description: str):
    return builtin(
        kind,
        name,
        NodeCategory.MODEL3D,
        inputs=inputs,
        outputs=[port(MODEL, PortType.MODEL3D)],
        default_data=default_data,
        description=description,
    )


MESHY_3D_NODE = _provider_3d(
    "meshy-3d", "Meshy 3D",
    [port("提示词", PortType.TEXT), port("参考图像", PortType.IMAGE)],
    {"artStyle": "realistic", "quality": "high"}, "Meshy 3D generation",
)
TRIPO_3D_NODE = _provider_3d(
    "tripo-3d", "Tripo 3D", [port("图像", PortType.IMAGE)], {}, "Tripo image to 3D",
)
RODIN_3D_NODE = _provider_3d(
    "rodin-3d", "Rodin 3D",
    [port("图像", PortType.IMAGE), port("提示词", PortType.TEXT)],
    {"quality": "high"}, "Rodin (Hyper3D) generation",
)
CSM_3D_NODE = _provider_3d(
    "csm-3d", "CSM 3D", [port("图像", PortType.IMAGE)], {"format": "glb"}, "CSM image to 3D",
)
LUMA_GENIE_3D_NODE = _provider_3d(
    "luma-genie-3d", "Luma Genie",
    [port("提示词", PortType.TEXT), port("图像", PortType.IMAGE)], {}, "Luma Genie 3D",
)
TRIPOSR_3D_NODE = _provider_3d(
    "triposr-3d", "TripoSR", [port("图像", PortType.IMAGE)], {}, "Fast TripoSR image to 3D",
)


MODEL3D_NODES = [
    TEXT_TO_3D_NODE,
    IMAGE_TO_3D_NODE,
    TEXTURE_3D_NODE,
    RIGGING_3D_NODE,
    ANIMATION_3D_NODE,
    RENDER_3D_NODE,
    TURNTABLE_3D_NODE,
    MESHY_3D_NODE,
    TRIPO_3D_NODE,
    RODIN_3D_NODE,
    CSM_3D_NODE,
    LUMA_GENIE_3D_NODE,
    TRIPOSR_3D_NODE,
]
