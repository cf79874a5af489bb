"""dirpost: post a directory tree to another host over one TCP connection.

- one side listens, the other connects; by default the listener receives
- the tree is streamed as metadata frames followed by raw file bytes
- every error aborts the session; partial files are left as they are
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
