"""Rola PET: moderation, reputation and marketplace services for micromobility owners."""

__version__ = "0.3.0"
