"""stream-aiter public API surface.

Wrap a push-based readable source (``"readable"``/``"end"``/``"error"``
events plus a non-blocking ``read``) so it can be consumed with ``async for``.
"""

from .config import IteratorOptions, load_options
from .events import EventEmitter
from .exceptions import SourceError, StreamAiterError, ValidationError
from .iterator import Iteration, State, StreamAsyncIterator, stream_to_async_iterator
from .source import MemoryReadable, ReadableSource
from .version import __version__

__all__ = [
    "EventEmitter",
    "Iteration",
    "IteratorOptions",
    "MemoryReadable",
    "ReadableSource",
    "SourceError",
    "State",
    "StreamAiterError",
    "StreamAsyncIterator",
    "ValidationError",
    "__version__",
    "load_options",
    "stream_to_async_iterator",
]
