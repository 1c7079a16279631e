"""Scene Rules: visual authoring support for story adventure rule lists."""

__version__ = "0.3.0"
