"""Common base for pluggable pipeline components."""
from typing import Optional


class Component:
    """A named pipeline component.

    ``name`` identifies the component in logs, in the question's failure
    lists and, for scorers, as the owner of every score it writes.
    """
    name: str = ""

    def __init__(self, name: Optional[str] = None):
        if name:
            self.name = name
        elif not self.name:
            self.name = type(self).__name__

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r})"


def component_name(component) -> str:
    """Name of any component, including duck-typed ones without a base class."""
    return getattr(component, "name", None) or type(component).__name__
