"""
JoinRender - Node-graph workflow engine for multimodal generation.

Typed nodes (text, LLM, image, video, audio, 3D and custom HTTP nodes) are
wired into a graph and run in topological order against a pluggable
capability executor. Graphs round-trip through a native JSON snapshot and
the node-graph editor interchange format.
"""

__version__ = "0.1.0"
