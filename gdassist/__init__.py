"""gdassist: turn assistant replies into Godot project files."""

__version__ = "0.4.0"
