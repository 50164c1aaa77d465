# Copyright (C) 2021-2025, Mindee.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

__all__ = ["NestedObject"]


def _indent_tail(text: str, num_spaces: int) -> str:
    first, *others = text.split("\n")
    return "\n".join([first] + [num_spaces * " " + line for line in others])


class NestedObject:
    """Base class of engines and services with a nested representation

    Subclasses describe their own settings in `extra_repr` and list the attributes holding
    other nested objects in `_children_names`, which are printed one per line.
    """

    _children_names: list[str] = []

    def extra_repr(self) -> str:
        return ""

    def __repr__(self) -> str:
        extra = self.extra_repr()
        lines = extra.split("\n") if extra else []
        children = [f"({name}): {_indent_tail(repr(getattr(self, name)), 2)}" for name in self._children_names]
        if not children and len(lines) <= 1:
            return f"{self.__class__.__name__}({''.join(lines)})"
        return f"{self.__class__.__name__}(\n  " + "\n  ".join(lines + children) + "\n)"
