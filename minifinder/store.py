import os
import shutil
import threading
import logging
from pathlib import Path
from .content import ContentIndex
from .tree import new_root

logger = logging.getLogger(__name__)

class Store:
    """Owns the folder tree, the identifier table and the on-disk directories.

    All access to root and index goes through lock; it is re-entrant so a
    service method may call helpers that take it again.
    """

    def __init__(self, data_dir, download_dir):
        self.data_dir = Path(data_dir)
        self.download_dir = Path(download_dir)
        self.root = new_root()
        self.index = ContentIndex(self.data_dir)
        self.lock = threading.RLock()

    def initialize(self):
        """Wipe and recreate the data and download directories, start with an empty tree"""
        with self.lock:
            for directory in (self.data_dir, self.download_dir):
                if directory.exists():
                    shutil.rmtree(directory)
                os.makedirs(directory)
                logger.info("Prepared empty directory %s", directory)
            self.root = new_root()
            self.index.clear()
