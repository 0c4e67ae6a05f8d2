"""Document-grounded chat core: chunking, chunk storage, citations and viewer sync."""

__version__ = "0.1.0"
