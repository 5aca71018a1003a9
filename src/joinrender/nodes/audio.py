"""
Audio Nodes - Speech synthesis, transcription and music.
"""

from __future__ import annotations

from joinrender.core.data_types import PortType
from joinrender.core.node_types import NodeCategory
from joinrender.nodes.base import builtin, port


TTS_NODE = builtin(
    "tts",
    "Text to Speech",
    NodeCategory.AUDIO,
    inputs=[port("文本", PortType.TEXT)],
    outputs=[port("音频", PortType.AUDIO)],
    default_data={"voice": "alloy", "provider": "openai"},
)

STT_NODE = builtin(
    "stt",
    "Speech to Text",
    NodeCategory.AUDIO,
    inputs=[port("音频", PortType.AUDIO)],
    outputs=[port("文本", PortType.TEXT)],
    default_data={"language": "zh"},
)

MUSIC_GEN_NODE = builtin(
    "music-gen",
    "Music Generation",
    NodeCategory.AUDIO,
    inputs=[port("提示词", PortType.TEXT)],
    outputs=[port("音频", PortType.AUDIO)],
    default_data={"duration": 30, "style": "pop", "provider": "suno"},
    description="Generate music from a description",
)


ELEVENLABS_TTS_NODE = builtin(
    "elevenlabs-tts",
    "ElevenLabs Speech",
    NodeCategory.AUDIO,
    inputs=[port("文本", PortType.TEXT)],
    outputs=[port("音频", PortType.AUDIO)],
    default_data={"voice": "Rachel", "model": "eleven_multilingual_v2"},
    description="ElevenLabs speech synthesis",
)

FISH_AUDIO_TTS_NODE = builtin(
    "fish-audio-tts",
    "Fish Audio Speech",
    NodeCategory.AUDIO,
    inputs=[port("文本", PortType.TEXT)],
    outputs=[port("音频", PortType.AUDIO)],
    default_data={"voice": ""},
    description="Fish Audio voice cloning and synthesis",
)


AUDIO_NODES = [TTS_NODE, STT_NODE, MUSIC_GEN_NODE, ELEVENLABS_TTS_NODE, FISH_AUDIO_TTS_NODE]
