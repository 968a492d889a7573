"""Append-only memory-mapped storage for ion series arrays.

Every ion series created during import or resolution copies its arrays into a
``MemoryMapStorage``. The arena is a set of fixed-capacity ``numpy.memmap``
chunk files, one chunk sequence per dtype. Stored arrays are handed out as
read-only views into the chunks, so derived features reference the data
instead of copying it.

Design principles:
1. Append-only: values are never overwritten once stored
2. One writer at a time (``store`` holds a lock), any number of readers
3. Readers need no locks because stored views are immutable

Examples
--------
>>> import numpy as np
>>> from alpharesolve.xic import MemoryMapStorage
>>>
>>> with MemoryMapStorage() as storage:
...     view = storage.store(np.array([1.0, 2.0, 3.0]))
...     view.flags.writeable
False
"""

import logging
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np

from ..exceptions import StorageError

logger = logging.getLogger(__name__)

# Values per chunk file (8 MB for float64)
DEFAULT_CHUNK_CAPACITY = 1_048_576


class _Chunk:
    """One memory-mapped chunk file with a fill pointer."""

    def __init__(self, path: Path, dtype: np.dtype, capacity: int):
        self.path = path
        self.capacity = capacity
        self.used = 0
        self.array = np.memmap(path, dtype=dtype, mode="w+", shape=(capacity,))

    @property
    def free(self) -> int:
        return self.capacity - self.used


class MemoryMapStorage:
    """Append-only arena of memory-mapped numeric chunks.

    Parameters
    ----------
    directory : str or Path, optional
        Directory for the chunk files. A temporary directory is created
        (and removed on ``close``) if omitted.
    chunk_capacity : int
        Number of values per chunk file (default: 1,048,576). Arrays larger
        than one chunk get a dedicated chunk of their own size.
    """

    def __init__(
        self,
        directory: Optional[Union[str, Path]] = None,
        chunk_capacity: int = DEFAULT_CHUNK_CAPACITY,
    ):
        if chunk_capacity <= 0:
            raise ValueError(f"chunk_capacity must be positive, got {chunk_capacity}")

        self._owns_directory = directory is None
        if directory is None:
            directory = tempfile.mkdtemp(prefix="alpharesolve_")
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

        self.chunk_capacity = chunk_capacity
        self._chunks: Dict[str, List[_Chunk]] = {}
        self._lock = threading.Lock()
        self._closed = False
        self._n_values = 0

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"MemoryMapStorage({str(self.directory)!r}, {state}, values={self._n_values:,})"

    def __enter__(self) -> "MemoryMapStorage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def number_of_values(self) -> int:
        """Total number of values stored so far."""
        return self._n_values

    @property
    def number_of_chunks(self) -> int:
        return sum(len(chunks) for chunks in self._chunks.values())

    def check_open(self) -> None:
        """Raise ``StorageError`` if the storage has been closed."""
        if self._closed:
            raise StorageError(f"Memory map storage at {self.directory} is closed")

    def store(self, values, dtype=np.float64) -> np.ndarray:
        """Append a 1-D array to the arena.

        Parameters
        ----------
        values : array-like
            One-dimensional values to store
        dtype : numpy dtype
            Storage dtype (default: float64)

        Returns
        -------
        np.ndarray
            Read-only view into the arena holding a copy of ``values``

        Raises
        ------
        StorageError
            If the storage is closed
        ValueError
            If ``values`` is not one-dimensional
        """
        dtype = np.dtype(dtype)
        values = np.asarray(values, dtype=dtype)
        if values.ndim != 1:
            raise ValueError(f"Only 1-D arrays can be stored, got shape {values.shape}")

        n = len(values)
        with self._lock:
            self.check_open()
            if n == 0:
                view = np.empty(0, dtype=dtype)
            else:
                chunk = self._chunk_with_space(dtype, n)
                start = chunk.used
                chunk.array[start:start + n] = values
                chunk.used += n
                self._n_values += n
                view = np.asarray(chunk.array[start:start + n])

        view.flags.writeable = False
        return view

    def _chunk_with_space(self, dtype: np.dtype, n: int) -> _Chunk:
        chunks = self._chunks.setdefault(dtype.name, [])
        if chunks and chunks[-1].free >= n:
            return chunks[-1]

        capacity = max(self.chunk_capacity, n)
        path = self.directory / f"{dtype.name}_{len(chunks):05d}.mmap"
        chunk = _Chunk(path, dtype, capacity)
        chunks.append(chunk)
        logger.debug(f"Opened storage chunk {path.name} ({capacity:,} values)")
        return chunk

    def close(self) -> None:
        """Flush all chunks and refuse further writes.

        Views handed out before closing stay readable: each keeps its
        memory map alive.
        """
        with self._lock:
            if self._closed:
                return
            for chunks in self._chunks.values():
                for chunk in chunks:
                    chunk.array.flush()
            self._closed = True

        if self._owns_directory:
            shutil.rmtree(self.directory, ignore_errors=True)
        logger.debug(f"Closed {self!r}")
