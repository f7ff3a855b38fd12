"""JSON serialization/deserialization for Iqra ASTs.

This module converts between AST dataclasses and plain Python dict/list
structures suitable for JSON encoding. Every node becomes a dict with a
``"type"`` key naming its class plus one key per field. Literal values
are numbers, strings, booleans or ``{"__nil__": true}``.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict

from . import ast as ast_nodes
from .ast import Node
from .types import NIL

NODE_TYPES: Dict[str, type] = {
    name: obj for name, obj in vars(ast_nodes).items()
    if isinstance(obj, type) and issubclass(obj, Node) and obj is not Node
}


def ast_to_obj(node: Any) -> Any:
    if node is None:
        return None
    if node is NIL:
        return {"__nil__": True}
    if isinstance(node, (int, float, str, bool)):
        return node
    if isinstance(node, (list, tuple)):
        return [ast_to_obj(item) for item in node]
    if isinstance(node, Node):
        obj: Dict[str, Any] = {"type": type(node).__name__}
        for f in fields(node):
            obj[f.name] = ast_to_obj(getattr(node, f.name))
        return obj
    raise TypeError(f"cannot serialize {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None or isinstance(obj, (bool, str)):
        return obj
    if isinstance(obj, (int, float)):
        # numbers are floats in the value model
        return float(obj)
    if isinstance(obj, list):
        return [ast_from_obj(item) for item in obj]
    if isinstance(obj, dict):
        if obj.get("__nil__"):
            return NIL
        type_name = obj.get("type")
        cls = NODE_TYPES.get(type_name)
        if cls is None:
            raise ValueError(f"unknown AST node type {type_name!r}")
        kwargs = {}
        for f in fields(cls):
            if f.name in obj:
                kwargs[f.name] = ast_from_obj(obj[f.name])
        if cls is ast_nodes.MapLiteral:
            kwargs["entries"] = [tuple(entry) for entry in kwargs.get("entries", [])]
        if "line" in kwargs and kwargs["line"] is not None:
            kwargs["line"] = int(kwargs["line"])
        return cls(**kwargs)
    raise TypeError(f"cannot deserialize {type(obj).__name__}")
