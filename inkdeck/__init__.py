"""Inkdeck: decide what e-ink devices render and which cached images stay valid."""

__version__ = "0.1.0"
