"""Two-way sync of Markdown documentation with ReadMe.io."""

__version__ = "0.1.0"
