"""
Media Nodes - Image and video generation.

Generation always goes through the capability executor. Inputs marked as
reference inputs take a character reference image so repeated shots keep
the same character.
"""

from __future__ import annotations

from joinrender.core.data_types import PortType
from joinrender.core.node_types import NodeCategory
from joinrender.nodes.base import builtin, port


CHARACTER_REFERENCE_NODE = builtin(
    "character-reference-gen",
    "Character Reference",
    NodeCategory.MEDIA,
    inputs=[port("角色提示词", PortType.TEXT)],
    outputs=[port("参考图像", PortType.IMAGE)],
    default_data={
        "pose": "T-Pose",
        "lighting": "neutral",
        "background": "green",
        "style": "full-body",
    },
    description="Generate a neutral full-body reference sheet for a character",
)

IMAGE_GEN_NODE = builtin(
    "image-gen",
    "Image Generation",
    NodeCategory.MEDIA,
    inputs=[
        port("提示词", PortType.TEXT),
        port("参考图像", PortType.IMAGE, reference=True),
    ],
    outputs=[port("图像", PortType.IMAGE)],
    default_data={"model": "sd-xl", "aspectRatio": "16:9"},
    description="Generate an image; connect a character reference for consistency",
)

ADVANCED_IMAGE_GEN_NODE = builtin(
    "advanced-image-gen",
    "Advanced Image Generation",
    NodeCategory.MEDIA,
    inputs=[
        port("提示词", PortType.TEXT),
        port("参考图像", PortType.IMAGE, reference=True),
    ],
    outputs=[port("图像", PortType.IMAGE)],
    default_data={"aspectRatio": "16:9", "style": "cinematic"},
    description="Image generation with style control and reference images",
)

VIDEO_GEN_NODE = builtin(
    "video-gen",
    "Video Generation",
    NodeCategory.MEDIA,
    inputs=[
        port("图像", PortType.IMAGE),
        port("提示词", PortType.TEXT),
        port("参考图像", PortType.IMAGE, reference=True),
    ],
    outputs=[port("视频", PortType.VIDEO)],
    default_data={"duration": 5, "motion": "auto"},
    description="Animate a still image",
)

FRAME_INTERPOLATION_NODE = builtin(
    "frame-interpolation",
    "Frame Interpolation",
    NodeCategory.MEDIA,
    inputs=[
        port("起始帧", PortType.IMAGE),
        port("结束帧", PortType.IMAGE),
        port("提示词", PortType.TEXT),
    ],
    outputs=[port("视频", PortType.VIDEO)],
    default_data={"duration": 4},
    description="Generate a video between a first and a last frame",
)

IMAGE_VARIATIONS_NODE = builtin(
    "image-variations",
    "Image Variations",
    NodeCategory.MEDIA,
    inputs=[
        port("源图像", PortType.IMAGE),
        port("参考图像", PortType.IMAGE, reference=True),
    ],
    outputs=[
        port("变体 1", PortType.IMAGE),
        port("变体 2", PortType.IMAGE),
        port("变体 3", PortType.IMAGE),
    ],
    default_data={"variationStrength": 0.5},
    description="Generate three variations of an image",
)

STYLE_TRANSFER_NODE = builtin(
    "style-transfer",
    "Style Transfer",
    NodeCategory.MEDIA,
    inputs=[
        port("内容图像", PortType.IMAGE),
        port("风格参考", PortType.IMAGE),
    ],
    outputs=[port("风格化图像", PortType.IMAGE)],
    default_data={"strength": 0.8},
)

REMOVE_BACKGROUND_NODE = builtin(
    "remove-background",
    "Remove Background",
    NodeCategory.MEDIA,
    inputs=[port("图像", PortType.IMAGE)],
    outputs=[
        port("图像", PortType.IMAGE),
        port("蒙版", PortType.IMAGE),
    ],
)

UPSCALE_NODE = builtin(
    "upscale",
    "Upscale",
    NodeCategory.MEDIA,
    inputs=[port("图像", PortType.IMAGE)],
    outputs=[port("图像", PortType.IMAGE)],
    default_data={"scale": 2},
    description="Super-resolution upscaling",
)


def _text_to_image(kind: str, name: str, default_data: dict, description: str):
    return builtin(
        kind,
        name,
        NodeCategory.MEDIA,
        inputs=[port("提示词", PortType.TEXT)],
        outputs=[port("图像", PortType.IMAGE)],
        default_data=default_data,
        description=description,
    )


def _image_to_video(kind: str, name: str, default_data: dict, description: str, first_frame: str = "图像"):
    return builtin(
        kind,
        name,
        NodeCategory.MEDIA,
        inputs=[port(first_frame, PortType.IMAGE), port("提示词", PortType.TEXT)],
        outputs=[port("视频", PortType.VIDEO)],
        default_data=default_data,
        description=description,
    )


# Provider-specific models

GEN4_TEXT_TO_IMAGE_NODE = _text_to_image(
    "gen4-text-to-image", "Gen-4 Text to Image",
    {"aspectRatio": "16:9", "style": "cinematic"}, "Runway Gen-4 text to image",
)
GEN4_IMAGE_TO_VIDEO_NODE = _image_to_video(
    "gen4-image-to-video", "Gen-4 Image to Video",
    {"duration": 5, "motion": "auto"}, "Runway Gen-4 image to video",
)
GEN45_TEXT_TO_VIDEO_NODE = builtin(
    "gen45-text-to-video",
    "Gen-4.5 Text to Video",
    NodeCategory.MEDIA,
    inputs=[port("提示词", PortType.TEXT)],
    outputs=[port("视频", PortType.VIDEO)],
    default_data={"duration": 10, "resolution": "1080p"},
    description="Runway Gen-4.5 text straight to video",
)
GEN45_IMAGE_TO_VIDEO_NODE = _image_to_video(
    "gen45-image-to-video", "Gen-4.5 Image to Video",
    {"duration": 10, "cameraMotion": "auto"}, "Runway Gen-4.5 video from a first frame",
    first_frame="首帧图像",
)
FLASH_IMAGE_NODE = _text_to_image(
    "flash-image", "Flash Image", {"aspectRatio": "1:1"}, "Fast image generation for quick iteration",
)

KLING_VIDEO_NODE = _image_to_video(
    "kling-video", "Kling Video", {"duration": 5, "model": "kling-v1"}, "Kling image to video",
)
LUMA_VIDEO_NODE = _image_to_video(
    "luma-video", "Luma Video", {"duration": 5}, "Luma Dream Machine video",
)
PIKA_VIDEO_NODE = _image_to_video(
    "pika-video", "Pika Video", {"duration": 3}, "Pika Labs video",
)
MINIMAX_VIDEO_NODE = _image_to_video(
    "minimax-video", "MiniMax Video", {}, "MiniMax Hailuo video",
)

DALLE_IMAGE_NODE = _text_to_image(
    "dalle-image", "DALL-E", {"model": "dall-e-3", "size": "1024x1024", "quality": "hd"}, "OpenAI DALL-E 3",
)
STABILITY_IMAGE_NODE = _text_to_image(
    "stability-image", "Stable Diffusion", {"width": 1024, "height": 1024, "cfgScale": 7}, "Stability AI SDXL",
)
MIDJOURNEY_IMAGE_NODE = _text_to_image("midjourney-image", "Midjourney", {}, "Midjourney")
IDEOGRAM_IMAGE_NODE = _text_to_image(
    "ideogram-image", "Ideogram", {"aspectRatio": "16:9"}, "Ideogram, strong at lettering",
)
LEONARDO_IMAGE_NODE = _text_to_image(
    "leonardo-image", "Leonardo AI", {"width": 1024, "height": 1024}, "Leonardo AI",
)


MEDIA_NODES = [
    CHARACTER_REFERENCE_NODE,
    IMAGE_GEN_NODE,
    ADVANCED_IMAGE_GEN_NODE,
    VIDEO_GEN_NODE,
    FRAME_INTERPOLATION_NODE,
    IMAGE_VARIATIONS_NODE,
    STYLE_TRANSFER_NODE,
    REMOVE_BACKGROUND_NODE,
    UPSCALE_NODE,
    GEN4_TEXT_TO_IMAGE_NODE,
    GEN4_IMAGE_TO_VIDEO_NODE,
    GEN45_TEXT_TO_VIDEO_NODE,
    GEN45_IMAGE_TO_VIDEO_NODE,
    FLASH_IMAGE_NODE,
    KLING_VIDEO_NODE,
    LUMA_VIDEO_NODE,
    PIKA_VIDEO_NODE,
    MINIMAX_VIDEO_NODE,
    DALLE_IMAGE_NODE,
    STABILITY_IMAGE_NODE,
    MIDJOURNEY_IMAGE_NODE,
    IDEOGRAM_IMAGE_NODE,
    LEONARDO_IMAGE_NODE,
]
