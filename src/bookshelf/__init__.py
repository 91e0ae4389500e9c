"""Search backend for the book review site."""

__version__ = "0.1.0"
