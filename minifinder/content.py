import logging
from pathlib import Path
from typing import Dict, Optional
from .error_handling import PathNotFoundError

logger = logging.getLogger(__name__)

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619

def fnv1a_32(text: str) -> int:
    """32-bit FNV-1a hash of the UTF-8 bytes of text"""
    value = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * FNV_PRIME) & 0xFFFFFFFF
    return value

class ContentIndex:
    """Maps full virtual file paths to the identifiers naming their content on disk.

    Identifiers are not collision checked beyond a warning; two paths hashing
    to the same value would share one data file.
    """

    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)
        self._identifiers: Dict[str, int] = {}  # full path -> identifier

    def identifier_for(self, full_path: str) -> int:
        return fnv1a_32(full_path)

    def filename_for(self, identifier: int) -> Path:
        return self.data_dir / str(identifier)

    def register(self, full_path: str, identifier: Optional[int] = None) -> int:
        """Store the identifier for full_path, hashing it unless one is given"""
        if identifier is None:
            identifier = self.identifier_for(full_path)
        owner = self.owner_of(identifier)
        if owner is not None and owner != full_path:
            logger.warning(
                "Identifier %s of %s already belongs to %s", identifier, full_path, owner
            )
        self._identifiers[full_path] = identifier
        return identifier

    def get(self, full_path: str) -> Optional[int]:
        return self._identifiers.get(full_path)

    def lookup(self, full_path: str) -> int:
        identifier = self._identifiers.get(full_path)
        if identifier is None:
            raise PathNotFoundError(f"No stored content for {full_path}", {"path": full_path})
        return identifier

    def forget(self, full_path: str) -> Optional[int]:
        return self._identifiers.pop(full_path, None)

    def entries_under(self, prefix: str) -> Dict[str, int]:
        """Every entry whose full path lies below the folder path prefix"""
        return {
            full_path: identifier
            for full_path, identifier in self._identifiers.items()
            if full_path.startswith(prefix)
        }

    def is_taken(self, identifier: int, full_path: str, vacating=()) -> bool:
        """True if identifier belongs to a path other than full_path and those in vacating"""
        return any(
            value == identifier and path != full_path and path not in vacating
            for path, value in self._identifiers.items()
        )

    def owner_of(self, identifier: int) -> Optional[str]:
        return next(
            (path for path, value in self._identifiers.items() if value == identifier),
            None
        )

    def clear(self):
        self._identifiers.clear()

    def items(self):
        return self._identifiers.items()

    def __contains__(self, full_path):
        return full_path in self._identifiers

    def __len__(self):
        return len(self._identifiers)
