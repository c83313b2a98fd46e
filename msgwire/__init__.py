"""Reading MessagePack data: a stream reader, extensions, numbers, files and JSON conversion."""

__version__ = "0.1.0"