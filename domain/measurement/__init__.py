"""Measurement Bounded Context.

Responsible for the active parcel outline and its displayed area:
- Value Objects: AreaReading, Measurement, editor events
- Services: geodesic_area, spherical_area, to_display, from_display
- Entities: EditHistory, PolygonEditor, EditorSession
"""
