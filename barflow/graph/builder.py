"""
Build an IndicatorContext from a declarative graph definition.

A definition is a mapping (or YAML text / file) of named nodes. Operands
reference other node names, in any order; numbers in operand position
become constant nodes. Every error (unknown type, unknown reference,
cycle, missing or unexpected param, operand of the wrong kind) is raised
before any bar is processed.

Definition format:
    time_frame: 1m          # optional
    num_type: double        # optional, default from config
    history_window: 5       # optional, 0 disables, default from config
    nodes:
      close:  {type: close}
      fast:   {type: sma, source: close, bar_count: 5}
      slow:   {type: sma, source: close, bar_count: 20}
      golden: {type: cross_over, up: fast, low: slow}
    outputs: [fast, slow, golden]   # optional, default: every node

Usage:
    from barflow.graph import build_context

    context = build_context("graph.yml")
    for bar in bars:
        context.on_bar(bar)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..config import get_config
from ..context import IndicatorContext
from ..indicators import BooleanIndicator, ConstantNumericIndicator, NumericIndicator
from ..indicators.base import Indicator
from ..num import NumFactory, get_num_factory
from ..utils.logger import get_logger
from . import nodes  # noqa: F401  (registers built-in node types)
from .registry import NodeType, get_node_type

logger = get_logger()

RESERVED_KEYS = ("type",)


def load_definition(source: str | Path | Mapping[str, Any]) -> dict[str, Any]:
    """
    Normalize a graph definition source into a mapping.

    Accepts a mapping, a path to a YAML file, or YAML text.

    Raises:
        ValueError: If the YAML does not contain a mapping.
    """
    if isinstance(source, Mapping):
        return dict(source)

    if isinstance(source, Path) or (
        isinstance(source, str) and "\n" not in source and source.endswith((".yml", ".yaml"))
    ):
        text = Path(source).read_text(encoding="utf-8")
    else:
        text = source

    definition = yaml.safe_load(text)
    if not isinstance(definition, dict):
        raise ValueError(
            f"Graph definition must be a mapping, got {type(definition).__name__}\n"
            f"\n"
            f"Fix: Provide YAML of the form:\n"
            f"  nodes:\n"
            f"    close: {{type: close}}\n"
            f"    sma_20: {{type: sma, source: close, bar_count: 20}}"
        )
    return definition


class GraphBuilder:
    """
    Resolves named node definitions into shared indicator instances.

    A node referenced by several parents is built once, so the resulting
    graph fans out instead of duplicating subtrees.
    """

    def __init__(self, node_defs: Mapping[str, Any], num_factory: NumFactory) -> None:
        if not isinstance(node_defs, Mapping) or not node_defs:
            raise ValueError(
                "Graph definition has no nodes\n"
                "\n"
                "Fix: Add a 'nodes' mapping, e.g.:\n"
                "  nodes:\n"
                "    close: {type: close}"
            )
        self.node_defs = node_defs
        self.num = num_factory
        self.built: dict[str, Indicator[Any]] = {}
        self._building: list[str] = []

    def build_all(self) -> dict[str, Indicator[Any]]:
        for name in self.node_defs:
            self.build(name)
        return self.built

    def build(self, name: str) -> Indicator[Any]:
        if name in self.built:
            return self.built[name]

        if name in self._building:
            cycle = " -> ".join(self._building[self._building.index(name):] + [name])
            raise ValueError(
                f"Cycle detected in graph: {cycle}\n"
                f"\n"
                f"Fix: Node operands must form a DAG; use a 'previous' node "
                f"only on an acyclic path."
            )

        node_def = self.node_defs[name]
        if not isinstance(node_def, Mapping) or "type" not in node_def:
            raise ValueError(
                f"Node '{name}' must be a mapping with a 'type' key, got {node_def!r}\n"
                f"\n"
                f"Fix: {name}: {{type: sma, source: close, bar_count: 20}}"
            )

        node_type = get_node_type(node_def["type"])

        self._building.append(name)
        try:
            inputs = self._resolve_inputs(name, node_type, node_def)
        finally:
            self._building.pop()

        params = self._resolve_params(name, node_type, node_def)
        indicator = node_type.builder(self.num, inputs, params)
        self.built[name] = indicator
        return indicator

    def _resolve_inputs(self, name: str, node_type: NodeType, node_def: Mapping[str, Any]) -> dict[str, Any]:
        inputs: dict[str, Any] = {}
        for key in node_type.inputs:
            if key not in node_def:
                raise ValueError(
                    f"Node '{name}' ({node_type.name}) is missing operand '{key}'\n"
                    f"\n"
                    f"Required operands: {list(node_type.inputs)}\n"
                    f"\n"
                    f"Fix: {name}: {{type: {node_type.name}, {key}: <node name>}}"
                )
            inputs[key] = self._operand(name, node_type, key, node_def[key])

        if node_type.variadic:
            refs = node_def.get(node_type.variadic)
            if not isinstance(refs, list) or not refs:
                raise ValueError(
                    f"Node '{name}' ({node_type.name}) needs a non-empty list "
                    f"'{node_type.variadic}'\n"
                    f"\n"
                    f"Fix: {name}: {{type: {node_type.name}, {node_type.variadic}: [a, b]}}"
                )
            inputs[node_type.variadic] = [
                self._operand(name, node_type, node_type.variadic, ref) for ref in refs
            ]
        return inputs

    def _operand(self, name: str, node_type: NodeType, key: str, ref: Any) -> Indicator[Any]:
        if isinstance(ref, (int, float)) and not isinstance(ref, bool):
            if node_type.operand_kind == "boolean":
                raise TypeError(
                    f"Node '{name}' ({node_type.name}): operand '{key}' must be a boolean node, "
                    f"got number {ref!r}\n"
                    f"\n"
                    f"Fix: Reference a boolean node such as a 'greater_than' or 'cross_over'."
                )
            return ConstantNumericIndicator(self.num, ref)

        if not isinstance(ref, str) or ref not in self.node_defs:
            available = ", ".join(self.node_defs)
            raise ValueError(
                f"Node '{name}' ({node_type.name}): operand '{key}' references unknown node {ref!r}\n"
                f"\n"
                f"Defined nodes: {available}\n"
                f"\n"
                f"Fix: Define '{ref}' under 'nodes' or correct the reference."
            )

        operand = self.build(ref)
        expected = BooleanIndicator if node_type.operand_kind == "boolean" else NumericIndicator
        if not isinstance(operand, expected):
            raise TypeError(
                f"Node '{name}' ({node_type.name}): operand '{key}' -> '{ref}' "
                f"must be a {node_type.operand_kind} node, got {type(operand).__name__}\n"
                f"\n"
                f"Fix: Reference a {node_type.operand_kind} node for '{key}'."
            )
        return operand

    def _resolve_params(self, name: str, node_type: NodeType, node_def: Mapping[str, Any]) -> dict[str, Any]:
        operand_keys = set(node_type.operand_keys)
        known = set(node_type.required) | set(node_type.optional) | operand_keys | set(RESERVED_KEYS)

        unexpected = sorted(set(node_def) - known)
        if unexpected:
            raise ValueError(
                f"Node '{name}' ({node_type.name}) has unexpected keys: {unexpected}\n"
                f"\n"
                f"Accepted keys: {sorted(known - set(RESERVED_KEYS))}\n"
                f"\n"
                f"Fix: Remove the unexpected keys or check their spelling."
            )

        missing = [key for key in node_type.required if key not in node_def]
        if missing:
            raise ValueError(
                f"Node '{name}' ({node_type.name}) is missing required params: {missing}\n"
                f"\n"
                f"Required: {list(node_type.required)}\n"
                f"Optional: {node_type.optional}\n"
                f"\n"
                f"Fix: {name}: {{type: {node_type.name}, "
                + ", ".join(f"{key}: <value>" for key in missing)
                + "}"
            )

        params = dict(node_type.optional)
        for key, value in node_def.items():
            if key not in operand_keys and key not in RESERVED_KEYS:
                params[key] = value
        return params


def build_context(
    source: str | Path | Mapping[str, Any],
    num_factory: NumFactory | None = None,
    history_window: int | None = None,
) -> IndicatorContext:
    """
    Build an IndicatorContext from a graph definition.

    Args:
        source: Mapping, YAML text, or path to a YAML file.
        num_factory: Numeric capability; defaults to the definition's
            num_type, then the configured BARFLOW_NUM_TYPE.
        history_window: History cache size; defaults to the definition's
            history_window, then BARFLOW_HISTORY_WINDOW. 0 disables.

    Returns:
        Context holding the output nodes under their definition names.

    Raises:
        ValueError / KeyError / TypeError: On any invalid definition.
    """
    definition = load_definition(source)
    engine_config = get_config().engine

    if num_factory is None:
        num_factory = get_num_factory(definition.get("num_type", engine_config.num_type))
    if history_window is None:
        history_window = definition.get("history_window", engine_config.history_window)

    builder = GraphBuilder(definition.get("nodes"), num_factory)
    built = builder.build_all()

    outputs = definition.get("outputs")
    if outputs is None:
        outputs = list(built)
    elif not isinstance(outputs, list) or not all(isinstance(name, str) for name in outputs):
        raise ValueError(
            f"Graph 'outputs' must be a list of node names, got {outputs!r}\n"
            f"\n"
            f"Fix: outputs: [fast, slow]"
        )
    elif not outputs:
        outputs = list(built)
    unknown = [name for name in outputs if name not in built]
    if unknown:
        raise ValueError(
            f"Graph outputs reference unknown nodes: {unknown}\n"
            f"\n"
            f"Defined nodes: {', '.join(built)}\n"
            f"\n"
            f"Fix: List only names defined under 'nodes' in 'outputs'."
        )

    context = IndicatorContext.empty(
        time_frame=str(definition.get("time_frame", "undefined")),
        history_window=history_window or None,
    )
    for name in outputs:
        context.add(built[name], name=name)

    logger.event(
        "GRAPH_BUILT",
        level=logging.INFO,
        nodes=len(built),
        outputs=len(outputs),
        num_type=num_factory.name,
        history_window=history_window or 0,
    )
    return context
