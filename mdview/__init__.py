"""mdview: Markdown to typed blocks, with cached asynchronous image loading."""

__version__ = "0.1.0"
