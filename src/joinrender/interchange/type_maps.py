"""
Type Maps - Name dictionaries shared by import and export.

The forward dictionaries (external name -> internal name) are the single
source of truth. The reverse dictionaries are derived from them and the
module refuses to load if either mapping is not one-to-one.
"""

from __future__ import annotations

from joinrender.core.data_types import PortType
from joinrender.core.node_types import NodeRegistry

# Prefix for node kinds created from unmapped external class names
KIND_PREFIX = "comfy-"

# Wildcard port type in the interchange format
WILDCARD_TYPE = "*"


# External port type -> internal tag
EXTERNAL_TO_PORT_TYPE: dict[str, PortType] = {
    "MODEL": PortType.MODEL,
    "CLIP": PortType.CLIP,
    "VAE": PortType.VAE,
    "LATENT": PortType.LATENT,
    "IMAGE": PortType.IMAGE,
    "MASK": PortType.MASK,
    "CONDITIONING": PortType.CONDITIONING,
    "CONTROL_NET": PortType.CONTROL_NET,
    "INT": PortType.INT,
    "FLOAT": PortType.FLOAT,
    "STRING": PortType.TEXT,
    "BOOLEAN": PortType.BOOLEAN,
}

# External node class -> internal node kind
EXTERNAL_TO_KIND: dict[str, str] = {
    "CheckpointLoaderSimple": "checkpoint-loader",
    "KSampler": "ksampler",
    "CLIPTextEncode": "clip-text-encode",
    "VAEDecode": "vae-decode",
    "VAEEncode": "vae-encode",
    "EmptyLatentImage": "empty-latent",
    "SaveImage": "image-output",
    "LoadImage": "image-upload",
}


def _invert(forward: dict, label: str) -> dict:
    reverse = {value: key for key, value in forward.items()}
    if len(reverse) != len(forward):
        raise ValueError(f"{label} map is not one-to-one")
    return reverse


PORT_TYPE_TO_EXTERNAL: dict[PortType, str] = _invert(EXTERNAL_TO_PORT_TYPE, "Port type")
KIND_TO_EXTERNAL: dict[str, str] = _invert(EXTERNAL_TO_KIND, "Node kind")


def import_port_type(external: str | None) -> PortType:
    """Map an external type name to a tag; anything unmapped becomes ANY."""
    if not external:
        return PortType.ANY
    return EXTERNAL_TO_PORT_TYPE.get(external, PortType.ANY)


def export_port_type(port_type: PortType) -> str:
    """Map a tag to an external type name; unmapped tags are upper-cased."""
    if port_type in PORT_TYPE_TO_EXTERNAL:
        return PORT_TYPE_TO_EXTERNAL[port_type]
    if port_type == PortType.ANY:
        return WILDCARD_TYPE
    return port_type.value.upper()


def heuristic_kind(external_class: str) -> str:
    """Kind for an external class with no explicit mapping."""
    return f"{KIND_PREFIX}{external_class.lower()}"


def heuristic_class(kind: str) -> str:
    """
    Best-effort external class for a kind with no explicit mapping.

    Strips the prefix, removes hyphens and upper-cases the first letter.
    This does not invert ``heuristic_kind`` for mixed-case names.
    """
    name = kind[len(KIND_PREFIX):] if kind.startswith(KIND_PREFIX) else kind
    name = name.replace("-", "")
    return name[:1].upper() + name[1:]


def resolve_kind(external_class: str, registry: NodeRegistry | None = None) -> str:
    """
    Internal kind for an external class name.

    Explicit mapping first, then a registered definition that declares the
    class, then the heuristic name.
    """
    if external_class in EXTERNAL_TO_KIND:
        return EXTERNAL_TO_KIND[external_class]
    if registry is not None:
        definition = registry.find_by_external_class(external_class)
        if definition is not None:
            return definition.kind
    return heuristic_kind(external_class)


def resolve_class(kind: str, registry: NodeRegistry | None = None) -> str:
    """
    External class name for an internal kind.

    Explicit mapping first, then the definition's declared class, then the
    heuristic name.
    """
    if kind in KIND_TO_EXTERNAL:
        return KIND_TO_EXTERNAL[kind]
    if registry is not None:
        definition = registry.get(kind)
        if definition is not None and definition.external_class:
            return definition.external_class
    return heuristic_class(kind)


def has_explicit_mapping(kind: str, registry: NodeRegistry | None = None) -> bool:
    """True when a kind exports to a class name that imports back to it."""
    if kind in KIND_TO_EXTERNAL:
        return True
    if registry is not None:
        definition = registry.get(kind)
        return definition is not None and bool(definition.external_class)
    return False
