"""Hotspot-avoidance route planning service."""
