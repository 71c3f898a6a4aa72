"""
Declarative indicator graphs.

Components:
- registry: node type registry (register_node, get_node_info, ...)
- nodes: built-in node types
- builder: build_context() from a mapping or YAML definition
"""

from .builder import GraphBuilder, build_context, load_definition
from .registry import (
    NODE_REGISTRY,
    NodeType,
    get_node_info,
    get_node_type,
    list_node_types,
    register_node,
    unregister_node,
)

__all__ = [
    "build_context",
    "load_definition",
    "GraphBuilder",
    "NODE_REGISTRY",
    "NodeType",
    "register_node",
    "get_node_type",
    "get_node_info",
    "list_node_types",
    "unregister_node",
]
