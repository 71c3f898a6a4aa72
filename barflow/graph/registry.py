"""
Node type registry for declarative indicator graphs.

Provides:
- NODE_REGISTRY: Global registry of node types by name
- register_node: Decorator to register a node builder function
- get_node_info: Get metadata about a registered node type
- list_node_types: List all registered node type names
- unregister_node: Remove a node type (primarily for tests)

Builders are registered at import time via @register_node. Each builder
receives the NumFactory, its resolved operand nodes and its params, and
returns a new indicator node.

Example:
    @register_node("sma", inputs=["source"], required=["bar_count"])
    def build_sma(num, inputs, params):
        return inputs["source"].sma(params["bar_count"])

    # In a graph definition:
    #   sma_20: {type: sma, source: close, bar_count: 20}
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..indicators.base import Indicator
from ..num import NumFactory

NodeBuilder = Callable[[NumFactory, dict[str, Any], dict[str, Any]], Indicator[Any]]


@dataclass(frozen=True)
class NodeType:
    """
    Metadata and builder for one registered node type.

    Attributes:
        name: Type name used in graph definitions.
        builder: Callable(num, inputs, params) -> Indicator.
        inputs: Operand keys that reference other nodes (or numbers).
        required: Param keys that must be present.
        optional: Param keys with their defaults.
        variadic: Key holding a list of operand references, if any.
        output: "numeric" or "boolean".
        operand_kind: Kind of node every operand must be.
    """

    name: str
    builder: NodeBuilder
    inputs: tuple[str, ...] = ()
    required: tuple[str, ...] = ()
    optional: dict[str, Any] = field(default_factory=dict)
    variadic: str | None = None
    output: str = "numeric"
    operand_kind: str = "numeric"

    @property
    def operand_keys(self) -> tuple[str, ...]:
        if self.variadic:
            return self.inputs + (self.variadic,)
        return self.inputs


# Global registry: maps node type name to its NodeType
NODE_REGISTRY: dict[str, NodeType] = {}


def register_node(
    name: str,
    inputs: list[str] | None = None,
    required: list[str] | None = None,
    optional: dict[str, Any] | None = None,
    variadic: str | None = None,
    output: str = "numeric",
    operand_kind: str = "numeric",
):
    """
    Decorator to register a node builder.

    Args:
        name: The node type name (e.g., "sma", "cross_over").
        inputs: Operand keys resolved to nodes before building.
        required: Param names that must be provided.
        optional: Param names with default values.
        variadic: Key holding a list of operand references.
        output: "numeric" or "boolean".
        operand_kind: "numeric" or "boolean" operands.

    Raises:
        TypeError: If the builder is not callable or output is invalid.
        ValueError: If name is already registered.
    """

    def decorator(builder: NodeBuilder) -> NodeBuilder:
        if not callable(builder):
            raise TypeError(
                f"Cannot register '{name}': builder must be callable, got {type(builder).__name__}\n"
                f"\n"
                f"Fix:\n"
                f"  @register_node('{name}', inputs=['source'])\n"
                f"  def build(num, inputs, params):\n"
                f"      ..."
            )

        if output not in ("numeric", "boolean") or operand_kind not in ("numeric", "boolean"):
            raise TypeError(
                f"Cannot register '{name}': output and operand_kind must be 'numeric' or 'boolean', got {output!r}/{operand_kind!r}\n"
                f"\n"
                f"Fix: @register_node('{name}', output='boolean')"
            )

        if name in NODE_REGISTRY:
            existing = NODE_REGISTRY[name]
            raise ValueError(
                f"Cannot register '{name}': already registered to '{existing.builder.__name__}'\n"
                f"\n"
                f"Fix: Use a different name or unregister the existing type first."
            )

        NODE_REGISTRY[name] = NodeType(
            name=name,
            builder=builder,
            inputs=tuple(inputs or ()),
            required=tuple(required or ()),
            optional=dict(optional or {}),
            variadic=variadic,
            output=output,
            operand_kind=operand_kind,
        )
        return builder

    return decorator


def get_node_type(name: str) -> NodeType:
    """
    Look up a registered node type.

    Raises:
        KeyError: If name is not registered, with available types listed.
    """
    if name not in NODE_REGISTRY:
        available = ", ".join(list_node_types()) or "(none registered)"
        raise KeyError(
            f"Node type '{name}' not registered\n"
            f"\n"
            f"Available types: {available}\n"
            f"\n"
            f"Fix: Use one of the available types, or register a new builder with:\n"
            f"  @register_node('{name}')\n"
            f"  def build(num, inputs, params):\n"
            f"      ..."
        )
    return NODE_REGISTRY[name]


def get_node_info(name: str) -> dict[str, Any]:
    """
    Get metadata about a registered node type.

    Returns:
        Dict with inputs, variadic, required_params, optional_params,
        output and docstring.

    Raises:
        KeyError: If name is not registered.
    """
    node_type = get_node_type(name)
    return {
        "inputs": list(node_type.inputs),
        "variadic": node_type.variadic,
        "required_params": list(node_type.required),
        "optional_params": dict(node_type.optional),
        "output": node_type.output,
        "operand_kind": node_type.operand_kind,
        "docstring": node_type.builder.__doc__,
    }


def list_node_types() -> list[str]:
    """Sorted list of registered node type names."""
    return sorted(NODE_REGISTRY.keys())


def unregister_node(name: str) -> bool:
    """
    Remove a node type from the registry.

    Returns:
        True if the type was removed, False if it wasn't registered.
    """
    if name in NODE_REGISTRY:
        del NODE_REGISTRY[name]
        return True
    return False
