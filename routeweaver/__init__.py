"""RouteWeaver backend: place suggestions and route assembly for road trips."""

__version__ = "1.0.0"
