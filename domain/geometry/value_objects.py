"""Geometry Bounded Context - Value Objects.

Immutable data structures for parcel outlines. All validation occurs at
construction time via Pydantic.

Coordinates are WGS84 degrees. A Polygon is an unclosed ring: the first
vertex is not repeated at the end.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Vertex(BaseModel):
    """Geographic coordinate of a polygon corner (Value Object).

    Invariants:
        lat in [-90, 90]
        lng in [-180, 180]

    Frozen Pydantic models compare and hash by value, so two vertices at the
    same coordinate are interchangeable.
    """

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    model_config = ConfigDict(frozen=True)


class BoundingBox(BaseModel):
    """Geographic extent of a ring (Value Object).

    Degenerate boxes (north == south or east == west) are allowed: a ring of
    collinear vertices still has an extent.
    """

    north: float = Field(ge=-90, le=90)
    south: float = Field(ge=-90, le=90)
    east: float = Field(ge=-180, le=180)
    west: float = Field(ge=-180, le=180)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_ordering(self) -> "BoundingBox":
        if self.south > self.north:
            raise ValueError(
                f"Invalid latitude ordering: south={self.south} > north={self.north}"
            )
        if self.west > self.east:
            raise ValueError(
                f"Invalid longitude ordering: west={self.west} > east={self.east}"
            )
        return self

    @property
    def height_deg(self) -> float:
        return self.north - self.south

    @property
    def width_deg(self) -> float:
        return self.east - self.west


class Polygon(BaseModel):
    """Ordered ring of vertices (Value Object).

    Insertion order is ring order. Fewer than 3 vertices is a valid, open
    polygon with zero area. Mutation helpers return new instances; the
    original is never modified.
    """

    vertices: tuple[Vertex, ...] = ()

    model_config = ConfigDict(frozen=True)

    def __len__(self) -> int:
        return len(self.vertices)

    @property
    def is_closed(self) -> bool:
        """True when the ring has enough vertices to enclose an area."""
        return len(self.vertices) >= 3

    def appended(self, vertex: Vertex) -> "Polygon":
        return Polygon(vertices=(*self.vertices, vertex))

    def inserted(self, index: int, vertex: Vertex) -> "Polygon":
        """Return a copy with vertex inserted at index (0 <= index <= len)."""
        if not 0 <= index <= len(self.vertices):
            raise IndexError(f"Insert index {index} out of range 0..{len(self)}")
        items = list(self.vertices)
        items.insert(index, vertex)
        return Polygon(vertices=tuple(items))

    def removed_at(self, index: int) -> "Polygon":
        """Return a copy without the vertex at index."""
        if not 0 <= index < len(self.vertices):
            raise IndexError(f"Remove index {index} out of range 0..{len(self) - 1}")
        return Polygon(vertices=self.vertices[:index] + self.vertices[index + 1 :])

    def lats(self) -> tuple[float, ...]:
        return tuple(v.lat for v in self.vertices)

    def lngs(self) -> tuple[float, ...]:
        return tuple(v.lng for v in self.vertices)
