# notekeep/core/storage.py
"""
Local durable storage for attachment bytes.

Objects are addressed by an opaque storage name generated by the attachment
service; the storage never sees user-supplied file names. All methods are
blocking and are meant to be run in an executor from async code.
"""
import logging
import os
from pathlib import Path
from typing import BinaryIO, Optional

logger = logging.getLogger("uvicorn.error")

COPY_CHUNK_SIZE = 64 * 1024


class ObjectTooLarge(ValueError):
    """The source stream held more bytes than the caller allowed."""


class LocalFileStorage:
    """
    Stores objects as flat files under a single upload root.

    Writes go to a temporary sibling file which is fsynced and then atomically
    renamed, so a stored object is either complete or absent.
    """

    def __init__(self, root: str | os.PathLike):
        self.root = Path(root).expanduser().resolve()

    def ensure_root(self) -> None:
        """Create the upload root if it does not exist yet."""
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, name: str) -> Path:
        """
        Map a storage name to a path inside the root.

        Raises:
            ValueError: If the name is empty or would escape the upload root
        """
        if not name or name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
            raise ValueError("invalid storage name")
        path = (self.root / name).resolve()
        if path.parent != self.root:
            raise ValueError("invalid storage name")
        return path

    def write_bytes(self, name: str, stream: BinaryIO, max_bytes: Optional[int] = None) -> int:
        """
        Copy `stream` into a new object called `name`.
        With `max_bytes` set, the copy stops as soon as the limit is exceeded.

        Returns:
            Number of bytes written

        Raises:
            OSError: If the bytes could not be written (no partial object is left behind)
            ObjectTooLarge: If more than `max_bytes` bytes were read
        """
        self.ensure_root()
        target = self._resolve(name)
        partial = target.with_name(target.name + ".part")
        written = 0
        try:
            with open(partial, "wb") as out:
                while True:
                    chunk = stream.read(COPY_CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if max_bytes is not None and written > max_bytes:
                        raise ObjectTooLarge(f"object exceeds {max_bytes} bytes")
                    out.write(chunk)
                out.flush()
                os.fsync(out.fileno())
            os.replace(partial, target)
        except Exception:
            logger.warning("[storage] write of %s failed after %d bytes, discarding partial object", name, written)
            partial.unlink(missing_ok=True)
            raise
        return written

    def read_bytes(self, name: str) -> BinaryIO:
        """
        Open an object for reading. The caller owns (and must close) the handle.

        Raises:
            FileNotFoundError: If the object does not exist
        """
        return open(self._resolve(name), "rb")

    def delete_bytes(self, name: str) -> bool:
        """
        Remove an object. A missing object is not an error.

        Returns:
            True if something was removed, False if it was already gone
        """
        try:
            self._resolve(name).unlink()
        except FileNotFoundError:
            return False
        return True

    def exists(self, name: str) -> bool:
        return self._resolve(name).is_file()

