"""Infrastructure Layer.

Adapters that implement domain ports and perform I/O: elevation providers
(HTTP API, GeoTIFF DEM), measurement stores, settings and wiring.
"""
