from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from ..logging import get_logger
from ..util.naming import display_name as _display_name

LOG = get_logger(__name__)

COMPONENT_FIELDS = ("id", "type", "x", "y", "width", "height", "name")


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class Component:
    """
    A typed, positioned node on the canvas.

    Type-specific settings (cidr_block, instance_type, ...) live in ``attributes``.
    """

    id: str
    type: str
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    name: Optional[str] = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return _display_name(self.type, self.name, self.id)

    def get(self, key: str, default: Any = None) -> Any:
        if key == "name":
            return self.name if self.name is not None else default
        return self.attributes.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }
        if self.name is not None:
            out["name"] = self.name
        for key, value in self.attributes.items():
            out.setdefault(key, value)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Optional[Component]:
        """Return None for a mapping without a usable id or type."""
        if not isinstance(data, Mapping):
            return None
        cid = data.get("id")
        ctype = data.get("type")
        if not isinstance(cid, str) or not cid or not isinstance(ctype, str) or not ctype:
            return None
        name = data.get("name")
        return cls(
            id=cid,
            type=ctype,
            x=_as_float(data.get("x")),
            y=_as_float(data.get("y")),
            width=_as_float(data.get("width")),
            height=_as_float(data.get("height")),
            name=str(name) if name else None,
            attributes={k: v for k, v in data.items() if k not in COMPONENT_FIELDS},
        )


@dataclass(frozen=True)
class Connection:
    """An edge between two component ids. Stored with a direction, validated as unordered."""

    id: str
    from_id: str
    to_id: str

    @property
    def pair(self) -> FrozenSet[str]:
        return frozenset((self.from_id, self.to_id))

    def touches(self, component_id: str) -> bool:
        return component_id in (self.from_id, self.to_id)

    def other(self, component_id: str) -> str:
        return self.to_id if self.from_id == component_id else self.from_id

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "from": self.from_id, "to": self.to_id}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Optional[Connection]:
        if not isinstance(data, Mapping):
            return None
        src = data.get("from")
        dst = data.get("to")
        if not isinstance(src, str) or not src or not isinstance(dst, str) or not dst:
            return None
        cid = data.get("id")
        return cls(id=str(cid) if cid else f"{src}-{dst}", from_id=src, to_id=dst)


ComponentLike = Union[Component, Mapping[str, Any]]
ConnectionLike = Union[Connection, Mapping[str, Any]]


def coerce_component(item: Optional[ComponentLike]) -> Optional[Component]:
    if item is None or isinstance(item, Component):
        return item
    return Component.from_dict(item)


def coerce_components(items: Optional[Iterable[ComponentLike]]) -> List[Component]:
    out: List[Component] = []
    for item in items or ():
        comp = coerce_component(item)
        if comp is None:
            LOG.debug("Skipping malformed component", extra={"component": repr(item)[:200]})
            continue
        out.append(comp)
    return out


def coerce_connections(items: Optional[Iterable[ConnectionLike]]) -> List[Connection]:
    out: List[Connection] = []
    for item in items or ():
        conn = item if isinstance(item, Connection) else Connection.from_dict(item)
        if conn is None:
            LOG.debug("Skipping malformed connection", extra={"connection": repr(item)[:200]})
            continue
        out.append(conn)
    return out


def index_components(components: Iterable[Component]) -> Dict[str, Component]:
    """id -> component, first occurrence wins, input order kept."""
    index: Dict[str, Component] = {}
    for comp in components:
        index.setdefault(comp.id, comp)
    return index
