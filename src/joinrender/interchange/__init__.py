"""
Interchange - Translation to and from the node-graph editor format.

This package provides:
- type_maps: port type and node class dictionaries
- plugins: external node definitions and plugin packs
- translator: document import and export

Usage:
    from joinrender.interchange import import_interchange, export_interchange

    graph = import_interchange(document, registry)
    document = export_interchange(graph, registry)
"""

from joinrender.interchange.plugins import (
    Plugin,
    PluginManager,
    definition_from_external,
)
from joinrender.interchange.translator import (
    INTERCHANGE_VERSION,
    export_interchange,
    import_interchange,
)
from joinrender.interchange.type_maps import (
    export_port_type,
    import_port_type,
    resolve_class,
    resolve_kind,
)

__all__ = [
    "INTERCHANGE_VERSION",
    "Plugin",
    "PluginManager",
    "definition_from_external",
    "export_interchange",
    "export_port_type",
    "import_interchange",
    "import_port_type",
    "resolve_class",
    "resolve_kind",
]
