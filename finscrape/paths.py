"""
Declarative traversal paths.

The pages this package reads have no schema beyond the position of their
tables, so every extractor describes where its data lives as a short list of
steps instead of chained index arithmetic:

    TraversalPath.of(select("#news > div"), children(), eq(1), find("tbody"))

A step applies to every node of the current selection and the results are
concatenated in document order, the way a jQuery-style selection behaves.
"""

from typing import Iterable, Literal, Optional, Union

from bs4 import Tag
from pydantic import BaseModel

StepOp = Literal["select", "find", "children", "eq"]


class PathStep(BaseModel):
    """One traversal step."""
    model_config = {"frozen": True}

    op: StepOp
    arg: Optional[Union[str, int]] = None

    def __str__(self) -> str:
        return f"{self.op}({'' if self.arg is None else repr(self.arg)})"


class TraversalPath(BaseModel):
    """Ordered, immutable sequence of steps."""
    model_config = {"frozen": True}

    steps: tuple[PathStep, ...] = ()

    @classmethod
    def of(cls, *steps: PathStep) -> "TraversalPath":
        return cls(steps=tuple(steps))

    def then(self, *steps: PathStep) -> "TraversalPath":
        """A new path with extra steps appended."""
        return TraversalPath(steps=self.steps + tuple(steps))

    def __str__(self) -> str:
        return " > ".join(str(s) for s in self.steps) or "<root>"


def select(css: str) -> PathStep:
    return PathStep(op="select", arg=css)


def find(css: str) -> PathStep:
    """Descendants matching `css`; the same as select, named for readability mid-path."""
    return PathStep(op="find", arg=css)


def children() -> PathStep:
    return PathStep(op="children")


def eq(index: int) -> PathStep:
    return PathStep(op="eq", arg=index)


def element_children(node: Tag) -> list[Tag]:
    """Child elements of a node, skipping text, comments and whitespace."""
    return [child for child in node.children if isinstance(child, Tag)]


def _dedupe(nodes: Iterable[Tag]) -> list[Tag]:
    # Two overlapping nodes can select the same descendant; keep the first
    seen: set[int] = set()
    unique = []
    for node in nodes:
        if id(node) not in seen:
            seen.add(id(node))
            unique.append(node)
    return unique


def apply_step(nodes: list[Tag], step: PathStep) -> list[Tag]:
    if step.op in ("select", "find"):
        return _dedupe(match for node in nodes for match in node.select(str(step.arg)))
    if step.op == "children":
        return [child for node in nodes for child in element_children(node)]
    if step.op == "eq":
        index = int(step.arg)
        return [nodes[index]] if 0 <= index < len(nodes) else []
    raise ValueError(f"Unknown path step: {step.op}")


def walk(nodes: list[Tag], path: TraversalPath) -> list[Tag]:
    """Evaluate `path` from `nodes`; an empty selection short-circuits to []."""
    current = nodes
    for step in path.steps:
        if not current:
            return []
        current = apply_step(current, step)
    return current


def child_at(node: Optional[Tag], index: int) -> Optional[Tag]:
    """The `index`-th element child of `node`, or None when it doesn't exist."""
    if node is None:
        return None
    kids = element_children(node)
    return kids[index] if 0 <= index < len(kids) else None


def text_of(node: Optional[Tag]) -> str:
    """Trimmed text of a node; a missing node reads as ""."""
    return node.get_text().strip() if node is not None else ""


def attr_of(node: Optional[Tag], name: str) -> str:
    """
    Attribute value of a node, "" when the node or attribute is missing.

    Multi-valued attributes (class) come back space-joined.
    """
    if node is None:
        return ""
    value = node.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value).strip()
