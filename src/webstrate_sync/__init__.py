"""Two-way sync between a local HTML mirror file and a shared json0 webstrate."""

__version__ = "0.3.0"
