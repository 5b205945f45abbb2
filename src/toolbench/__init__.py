"""toolbench: a terminal dashboard for installing and updating development tools."""

__version__ = "0.1.0"
