import os
import logging
from typing import Callable, Optional
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler, FileSystemEvent
from .store import Store

logger = logging.getLogger(__name__)

class ContentWatcher:
    """Watch the data dir for content files that vanish outside the service.

    The service holds the store lock while it removes or renames content and
    updates the index, so checking the index under the same lock only flags
    changes made by someone else.
    """

    def __init__(self, store: Store, callback: Optional[Callable[[str], None]] = None):
        self.store = store
        self.callback = callback
        self.observer = None
        self.handler = self._make_handler()

    def _make_handler(self) -> FileSystemEventHandler:
        watcher = self

        class Handler(FileSystemEventHandler):
            def on_any_event(self, event: FileSystemEvent):
                if event.is_directory:
                    return
                if event.event_type in ("deleted", "moved"):
                    watcher.check_removed(event.src_path)

        return Handler()

    def check_removed(self, src_path) -> Optional[str]:
        """Log and report the virtual path whose content lived at src_path, if any"""
        name = os.path.basename(os.fsdecode(src_path))
        if not name.isdigit():
            return None
        with self.store.lock:
            full_path = self.store.index.owner_of(int(name))
        if full_path is None:
            return None
        logger.warning("Content of %s was removed from %s outside the finder", full_path, src_path)
        if self.callback:
            self.callback(full_path)
        return full_path

    def start(self):
        if self.observer:
            self.stop()
        self.observer = Observer()
        self.observer.schedule(self.handler, str(self.store.data_dir), recursive=False)
        self.observer.start()
        logger.info("Watching %s", self.store.data_dir)

    def stop(self):
        if self.observer:
            self.observer.stop()
            self.observer.join()
            self.observer = None
