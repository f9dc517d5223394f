"""Outer surfaces: REST API and terminal play loop."""
