"""
Workflow Templates - Ready-made graphs to start from.

Each template is a small native snapshot: node ids, kinds, positions,
literal data and connections. Loading one goes through the same path as a
saved workflow file, so template nodes get their ports from the registry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from joinrender.core.errors import UnknownTemplateError
from joinrender.core.workflow_io import SNAPSHOT_VERSION

# (node id, kind, (x, y), literal data)
TemplateNode = tuple[str, str, tuple[float, float], dict[str, Any]]
# (source node, source port, target node, target port)
TemplateLink = tuple[str, str, str, str]


@dataclass
class WorkflowTemplate:
    id: str
    name: str
    description: str
    nodes: list[TemplateNode] = field(default_factory=list)
    links: list[TemplateLink] = field(default_factory=list)

    def to_snapshot(self) -> dict[str, Any]:
        """Render the template as a native workflow document."""
        return {
            "version": SNAPSHOT_VERSION,
            "name": self.name,
            "description": self.description,
            "nodes": [
                {
                    "id": node_id,
                    "type": kind,
                    "position": {"x": x, "y": y},
                    "data": dict(data),
                }
                for node_id, kind, (x, y), data in self.nodes
            ],
            "connections": [
                {
                    "id": f"c{index}",
                    "sourceNodeId": source,
                    "sourcePortId": source_port,
                    "targetNodeId": target,
                    "targetPortId": target_port,
                }
                for index, (source, source_port, target, target_port) in enumerate(self.links, start=1)
            ],
        }


DIRECTOR_PROMPT = """Role: science fiction film director
Task: turn the user's story excerpt into three distinct visual prompts
Output format: JSON with the keys characterRef, actionShot and closeUp

characterRef: full-body T-pose, neutral studio lighting, plain green background, character sheet style
actionShot: cinematic wide shot, dramatic lighting, dynamic camera angle, cyberpunk city background
closeUp: extreme close-up portrait, emotional expression, dramatic rim light, shallow depth of field"""

REFERENCE_DATA = {"pose": "T-Pose", "lighting": "neutral", "background": "green"}


CHARACTER_CREATOR = WorkflowTemplate(
    id="character-creator",
    name="Character Creator",
    description="Story text to two consistent video shots of the same character",
    nodes=[
        ("input-1", "text-input", (50, 200), {
            "text": "A young cyberpunk hacker with short hair, glowing AR glasses "
                    "and a black leather jacket, sharp and confident eyes.",
        }),
        ("llm-1", "llm", (300, 150), {}),
        ("splitter-1", "json-splitter", (550, 150), {}),
        ("ref-1", "character-reference-gen", (800, 50), {**REFERENCE_DATA, "style": "full-body"}),
        ("gen-1", "image-gen", (800, 200), {"model": "sd-xl", "aspectRatio": "16:9"}),
        ("gen-2", "image-gen", (800, 350), {"model": "sd-xl", "aspectRatio": "16:9"}),
        ("video-1", "video-gen", (1100, 150), {"duration": 5, "motion": "auto"}),
        ("video-2", "video-gen", (1100, 350), {"duration": 3, "motion": "subtle"}),
        ("output-1", "video-output", (1400, 150), {"format": "mp4", "quality": "high"}),
        ("output-2", "video-output", (1400, 350), {"format": "mp4", "quality": "high"}),
    ],
    links=[
        ("input-1", "output-0", "llm-1", "input-0"),
        ("llm-1", "output-0", "splitter-1", "input-0"),
        ("splitter-1", "output-0", "ref-1", "input-0"),
        ("splitter-1", "output-1", "gen-1", "input-0"),
        ("splitter-1", "output-2", "gen-2", "input-0"),
        ("ref-1", "output-0", "gen-1", "input-1"),
        ("ref-1", "output-0", "gen-2", "input-1"),
        ("gen-1", "output-0", "video-1", "input-0"),
        ("gen-2", "output-0", "video-2", "input-0"),
        ("ref-1", "output-0", "video-1", "input-2"),
        ("ref-1", "output-0", "video-2", "input-2"),
        ("video-1", "output-0", "output-1", "input-0"),
        ("video-2", "output-0", "output-2", "input-0"),
    ],
)

SCI_FI_UNIVERSE = WorkflowTemplate(
    id="sci-fi-universe",
    name="Sci-Fi Universe",
    description="Story excerpt to an action shot, a close-up and a storyboard",
    nodes=[
        ("input-1", "text-input", (50, 250), {
            "text": "In a neon-lit future city a woman in a battered mechanical exoskeleton "
                    "stands on top of a skyscraper. Short silver hair, a glowing cybernetic "
                    "left eye and a scar running from her forehead to her cheek.",
        }),
        ("llm-1", "llm", (300, 200), {"systemPrompt": DIRECTOR_PROMPT}),
        ("splitter-1", "json-splitter", (550, 200), {}),
        ("ref-1", "character-reference-gen", (800, 50), dict(REFERENCE_DATA)),
        ("gen-action", "advanced-image-gen", (800, 200), {"aspectRatio": "21:9", "style": "cinematic"}),
        ("gen-closeup", "advanced-image-gen", (800, 350), {"aspectRatio": "1:1", "style": "portrait"}),
        ("video-action", "video-gen", (1100, 200), {"duration": 5, "motion": "dynamic"}),
        ("video-closeup", "video-gen", (1100, 350), {"duration": 3, "motion": "subtle"}),
        ("storyboard-1", "storyboard-output", (1100, 500), {"layout": "horizontal"}),
        ("output-1", "video-output", (1400, 200), {"format": "mp4", "quality": "high"}),
        ("output-2", "video-output", (1400, 350), {"format": "mp4", "quality": "high"}),
    ],
    links=[
        ("input-1", "output-0", "llm-1", "input-0"),
        ("llm-1", "output-0", "splitter-1", "input-0"),
        ("splitter-1", "output-0", "ref-1", "input-0"),
        ("splitter-1", "output-1", "gen-action", "input-0"),
        ("splitter-1", "output-2", "gen-closeup", "input-0"),
        ("ref-1", "output-0", "gen-action", "input-1"),
        ("ref-1", "output-0", "gen-closeup", "input-1"),
        ("gen-action", "output-0", "video-action", "input-0"),
        ("gen-closeup", "output-0", "video-closeup", "input-0"),
        ("ref-1", "output-0", "video-action", "input-2"),
        ("ref-1", "output-0", "video-closeup", "input-2"),
        ("video-action", "output-0", "output-1", "input-0"),
        ("video-closeup", "output-0", "output-2", "input-0"),
        ("ref-1", "output-0", "storyboard-1", "input-0"),
        ("gen-action", "output-0", "storyboard-1", "input-1"),
        ("gen-closeup", "output-0", "storyboard-1", "input-2"),
    ],
)

SIMPLE_IMAGE = WorkflowTemplate(
    id="simple-image",
    name="Simple Image",
    description="Plain text-to-image",
    nodes=[
        ("input-1", "text-input", (100, 200), {"text": "A beautiful seaside sunset, cinematic lighting, 8K"}),
        ("gen-1", "advanced-image-gen", (400, 200), {"aspectRatio": "16:9", "style": "cinematic"}),
        ("output-1", "image-output", (700, 200), {"format": "png", "quality": 90}),
    ],
    links=[
        ("input-1", "output-0", "gen-1", "input-0"),
        ("gen-1", "output-0", "output-1", "input-0"),
    ],
)

TEMPLATES: dict[str, WorkflowTemplate] = {
    t.id: t for t in (CHARACTER_CREATOR, SCI_FI_UNIVERSE, SIMPLE_IMAGE)
}


def get_template(template_id: str) -> WorkflowTemplate:
    try:
        return TEMPLATES[template_id]
    except KeyError:
        raise UnknownTemplateError(template_id) from None
