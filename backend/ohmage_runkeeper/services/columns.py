from __future__ import annotations

from typing import Optional


class ColumnNode:
    """A node in the tree of columns a caller asked for.

    A leaf node selects everything beneath it, so an empty root means "all
    columns".
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name
        self._children: dict[str, ColumnNode] = {}

    @classmethod
    def from_column_list(cls, column_list: Optional[str]) -> ColumnNode:
        root = cls()
        for column in (column_list or "").split(","):
            column = column.strip()
            if not column:
                continue
            node = root
            for part in column.split("."):
                part = part.strip()
                if part:
                    node = node.add_child(part)
        return root

    def add_child(self, name: str) -> ColumnNode:
        if name not in self._children:
            self._children[name] = ColumnNode(name)
        return self._children[name]

    def get_child(self, name: str) -> Optional[ColumnNode]:
        return self._children.get(name)

    def has_child(self, name: str) -> bool:
        return name in self._children

    @property
    def children(self) -> list[str]:
        return list(self._children)

    def is_leaf(self) -> bool:
        return not self._children

    def __repr__(self) -> str:
        return f"ColumnNode(name={self.name!r}, children={self.children!r})"


def selects(columns: Optional[ColumnNode], field: str) -> bool:
    return columns is None or columns.is_leaf() or columns.has_child(field)
