"""SceneSync — encrypted per-user scene sync."""

__version__ = "1.2.0"
