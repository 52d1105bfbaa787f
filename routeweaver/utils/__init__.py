"""Utility functions for the backend."""

from routeweaver.utils.geo import decode_polyline, haversine_meters
from routeweaver.utils.place_parser import parse_places
from routeweaver.utils.route_codec import decode_route_data, encode_route_data

__all__ = [
    "decode_polyline",
    "haversine_meters",
    "parse_places",
    "decode_route_data",
    "encode_route_data",
]
