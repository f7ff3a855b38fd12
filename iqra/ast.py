"""Abstract Syntax Tree (AST) definitions for the Iqra language.

The parser produces these nodes and the interpreter walks them. Node
classes carry no language information: a program written with Arabic
keywords and the same program written with English keywords produce
equal trees. Nodes that can fail at runtime keep the source line so
errors can point at it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass
class Program(Node):
    body: List[Node]


@dataclass
class Block(Node):
    statements: List[Node]


@dataclass
class Assignment(Node):
    name: str
    value: Node
    line: Optional[int] = None


@dataclass
class IfStmt(Node):
    condition: Node
    then_block: Block
    else_branch: Optional[Node]  # IfStmt or Block


@dataclass
class WhileStmt(Node):
    condition: Node
    body: Block


@dataclass
class FunctionDef(Node):
    name: str
    params: List[str]
    body: Block
    line: Optional[int] = None


@dataclass
class ReturnStmt(Node):
    value: Optional[Node]


@dataclass
class TryCatch(Node):
    try_block: Block
    err_name: str
    catch_block: Block


@dataclass
class ExprStmt(Node):
    expr: Node


@dataclass
class Literal(Node):
    value: Any  # float, str, bool or NIL


@dataclass
class Identifier(Node):
    name: str
    line: Optional[int] = None


@dataclass
class UnaryOp(Node):
    op: str  # '-' or 'not'
    operand: Node
    line: Optional[int] = None


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node
    line: Optional[int] = None


@dataclass
class Call(Node):
    callee: Node
    args: List[Node]
    line: Optional[int] = None


@dataclass
class Index(Node):
    target: Node
    key: Node
    line: Optional[int] = None


@dataclass
class ListLiteral(Node):
    elements: List[Node]


@dataclass
class MapLiteral(Node):
    entries: List[Tuple[Node, Node]]
    line: Optional[int] = None
