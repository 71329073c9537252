"""Two-team domino score tracker with AI match commentary."""

__version__ = "0.1.0"
