"""BIM schedule builder: scene-graph extraction, parameter discovery and parent/child table assembly."""

__version__ = "0.1.0"
