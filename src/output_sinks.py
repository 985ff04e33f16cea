"""
Output destinations for normalized reads.

A destination is either a regular file (created or truncated) or an
existing named pipe. Opening a named pipe for writing BLOCKS until some
reader opens the other end; nothing here creates that reader. A caller
passing a FIFO must arrange a concurrent reader, otherwise the process
appears to hang at open time. Writes to a pipe block whenever the reader
falls behind, which is the backpressure the transform relies on.
"""
import logging
import os
import stat
from contextlib import ExitStack, contextmanager
from typing import Tuple

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_BYTES = 8 * 1024 * 1024


def is_named_pipe(path: str) -> bool:
    try:
        return stat.S_ISFIFO(os.stat(path).st_mode)
    except FileNotFoundError:
        return False


@contextmanager
def open_sink(path: str, buffer_size: int = DEFAULT_BUFFER_BYTES):
    """
    Open `path` for sequential binary writing and guarantee flush + close on
    every exit path. Sink I/O errors propagate unchanged.
    """
    if is_named_pipe(path):
        logger.info(f"Opening named pipe {path} for writing, blocking until a reader attaches...")
        sink = open(path, "wb")
        logger.info(f"Reader attached to {path}")
    else:
        sink = open(path, "wb", buffering=buffer_size)
    try:
        yield sink
    finally:
        # close() flushes buffered bytes first
        sink.close()
        logger.debug(f"Closed output {path}")


@contextmanager
def open_sink_pair(path1: str, path2: str, buffer_size: int = DEFAULT_BUFFER_BYTES):
    """Open the mate 1 and mate 2 outputs, in that order, as one scoped resource."""
    with ExitStack() as stack:
        sink1 = stack.enter_context(open_sink(path1, buffer_size))
        sink2 = stack.enter_context(open_sink(path2, buffer_size))
        yield sink1, sink2


def make_fifo_pair(directory: str) -> Tuple[str, str]:
    """Create r1.pipe and r2.pipe in `directory`, readable and writable by the owner only."""
    r1_fifo = os.path.join(directory, "r1.pipe")
    r2_fifo = os.path.join(directory, "r2.pipe")
    for mate, fifo in ((1, r1_fifo), (2, r2_fifo)):
        try:
            os.mkfifo(fifo, 0o700)
        except OSError as e:
            raise OSError(e.errno, f"Error creating read {mate} fifo {fifo}: {e.strerror}") from e
        logger.info(f"Created {fifo}")
    return r1_fifo, r2_fifo
