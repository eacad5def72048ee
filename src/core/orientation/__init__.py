"""Orientation fusion: device-orientation samples to a camera rotation and heading."""
