import os
import shutil
import tempfile
import logging
from pathlib import Path
from typing import BinaryIO, Optional
from . import tree
from .paths import resolve, join
from .store import Store
from .error_handling import FileOperationError, PathNotFoundError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

def free_download_path(download_dir: Path, filename: str) -> Path:
    """name.ext, name (1).ext, name (2).ext, ... whichever does not exist yet"""
    candidate = download_dir / filename
    stem, extension = os.path.splitext(filename)
    i = 0
    while candidate.exists():
        i += 1
        candidate = download_dir / f"{stem} ({i}){extension}"
    return candidate

class FileOperationService:
    """Upload, download, delete and rename files against a Store.

    Every operation runs under the store lock. Disk changes happen before
    the tree is committed, or the tree change is rolled back when the disk
    step fails, so the two only diverge when the disk is changed from outside.
    """

    def __init__(self, store: Store, max_upload_bytes: Optional[int] = None):
        self.store = store
        self.max_upload_bytes = max_upload_bytes

    @property
    def index(self):
        return self.store.index

    def describe(self, path: str) -> dict:
        """Snapshot of the folder at path, safe to use after the lock is released"""
        with self.store.lock:
            return resolve(self.store.root, path).to_dict()

    def tree(self) -> dict:
        with self.store.lock:
            return self.store.root.to_dict()

    def create_folder(self, path: str):
        with self.store.lock:
            parent = resolve(self.store.root, path)
            folder = tree.add_folder(parent)
            logger.info("Created folder %s", folder.path)
            return folder

    def _spool(self, stream: BinaryIO) -> Path:
        """Copy stream into a temporary file inside the data dir"""
        spooled = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=self.store.data_dir, prefix=".upload-", delete=False
            ) as dst:
                spooled = Path(dst.name)
                written = 0
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if self.max_upload_bytes is not None and written > self.max_upload_bytes:
                        raise FileOperationError(
                            f"Upload exceeds {self.max_upload_bytes} bytes",
                            {"limit": self.max_upload_bytes}
                        )
                    dst.write(chunk)
            return spooled
        except (OSError, FileOperationError) as e:
            if spooled is not None:
                spooled.unlink(missing_ok=True)
            if isinstance(e, FileOperationError):
                raise
            raise FileOperationError(f"Could not store upload: {e}") from e

    def upload(self, path: str, filename: str, stream: BinaryIO):
        """Store stream as filename inside the folder at path, renaming on collision"""
        tree.validate_name(filename)
        spooled = self._spool(stream)
        try:
            with self.store.lock:
                parent = resolve(self.store.root, path)
                name = tree.unique_file_name(parent, filename)
                full_path = join(parent.path, name)
                identifier = self.index.identifier_for(full_path)
                if self.index.is_taken(identifier, full_path):
                    raise FileOperationError(
                        f"Identifier {identifier} of {full_path} is in use",
                        {"identifier": identifier}
                    )
                try:
                    os.replace(spooled, self.index.filename_for(identifier))
                except OSError as e:
                    raise FileOperationError(f"Could not store {full_path}: {e}") from e
                node = tree.add_file(parent, name)
                self.index.register(full_path, identifier)
                logger.info("Uploaded %s as %s", full_path, identifier)
                return node
        finally:
            spooled.unlink(missing_ok=True)

    def _stored_file(self, path: str, filename: str):
        parent = resolve(self.store.root, path)
        node = tree.find_child(parent, filename, is_folder=False)
        if node is None:
            raise PathNotFoundError(
                f"File not found: {join(parent.path, filename)}",
                {"path": path, "filename": filename}
            )
        return node, self.index.lookup(node.full_path)

    def read_content(self, path: str, filename: str) -> bytes:
        """Stored bytes of a file, read while no other operation can move them"""
        with self.store.lock:
            node, identifier = self._stored_file(path, filename)
            try:
                return self.index.filename_for(identifier).read_bytes()
            except FileNotFoundError as e:
                logger.warning("Content of %s is missing from disk", node.full_path)
                raise PathNotFoundError(
                    f"No stored content for {node.full_path}", {"path": node.full_path}
                ) from e
            except OSError as e:
                raise FileOperationError(f"Could not read {node.full_path}: {e}") from e

    def download(self, path: str, filename: str) -> Path:
        """Copy stored content into the download dir, returning the copy's path"""
        with self.store.lock:
            node, identifier = self._stored_file(path, filename)
            target = free_download_path(self.store.download_dir, filename)
            try:
                shutil.copyfile(self.index.filename_for(identifier), target)
            except OSError as e:
                raise FileOperationError(f"Could not download {node.full_path}: {e}") from e
            logger.info("Downloaded %s to %s", node.full_path, target)
            return target

    def delete(self, path: str, filename: str) -> bool:
        """Remove a file and its content; False if there was no such file"""
        with self.store.lock:
            parent = resolve(self.store.root, path)
            node = tree.find_child(parent, filename, is_folder=False)
            if node is None:
                return False

            full_path = node.full_path
            identifier = self.index.get(full_path)
            if identifier is None:
                logger.warning("No content recorded for %s, removing tree entry only", full_path)
            else:
                try:
                    os.remove(self.index.filename_for(identifier))
                except FileNotFoundError:
                    logger.warning("Content of %s was already missing from disk", full_path)
                except OSError as e:
                    raise FileOperationError(f"Could not delete {full_path}: {e}") from e

            tree.delete_file(parent, filename)
            self.index.forget(full_path)
            logger.info("Deleted %s", full_path)
            return True

    def rename_file(self, path: str, old_name: str, new_name: str):
        with self.store.lock:
            parent = resolve(self.store.root, path)
            old_full_path = join(parent.path, old_name)
            node = tree.rename_file(parent, old_name, new_name)
            new_full_path = node.full_path

            old_identifier = self.index.get(old_full_path)
            if old_identifier is None:
                logger.warning("No content recorded for %s, renamed tree entry only", old_full_path)
                return node

            new_identifier = self.index.identifier_for(new_full_path)
            if self.index.is_taken(new_identifier, new_full_path, vacating=(old_full_path,)):
                node.name = old_name
                raise FileOperationError(
                    f"Identifier {new_identifier} of {new_full_path} is in use",
                    {"identifier": new_identifier}
                )
            try:
                os.rename(
                    self.index.filename_for(old_identifier),
                    self.index.filename_for(new_identifier)
                )
            except OSError as e:
                node.name = old_name
                logger.error("Rolled back rename of %s: %s", old_full_path, e)
                raise FileOperationError(f"Could not rename {old_full_path}: {e}") from e

            self.index.forget(old_full_path)
            self.index.register(new_full_path, new_identifier)
            logger.info("Renamed %s to %s", old_full_path, new_full_path)
            return node

    def rename_folder(self, folder_path: str, new_name: str):
        """Rename the folder at folder_path; returns its parent for navigation.

        Content of every file below the folder is moved to the identifier of
        its new full path, so the old path can be reused without clashing.
        """
        with self.store.lock:
            node = resolve(self.store.root, folder_path)
            old_prefix = node.path
            old_name = node.name
            tree.rename_folder(node, new_name)
            new_prefix = node.path
            if new_prefix == old_prefix:
                return node.parent or node

            entries = self.index.entries_under(old_prefix)
            moves = [
                (old_path, new_prefix + old_path[len(old_prefix):], identifier)
                for old_path, identifier in entries.items()
            ]
            done = []
            try:
                for old_path, new_path, old_identifier in moves:
                    new_identifier = self.index.identifier_for(new_path)
                    if self.index.is_taken(new_identifier, new_path, vacating=entries):
                        raise FileOperationError(
                            f"Identifier {new_identifier} of {new_path} is in use",
                            {"identifier": new_identifier}
                        )
                    os.rename(
                        self.index.filename_for(old_identifier),
                        self.index.filename_for(new_identifier)
                    )
                    done.append((old_identifier, new_identifier))
            except (OSError, FileOperationError) as e:
                for old_identifier, new_identifier in reversed(done):
                    try:
                        os.rename(
                            self.index.filename_for(new_identifier),
                            self.index.filename_for(old_identifier)
                        )
                    except OSError as rollback_error:
                        logger.error("Error during folder rename rollback: %s", rollback_error)
                node.name = old_name
                logger.error("Rolled back rename of folder %s: %s", old_prefix, e)
                if isinstance(e, FileOperationError):
                    raise
                raise FileOperationError(f"Could not rename {old_prefix}: {e}") from e

            for old_path, _, _ in moves:
                self.index.forget(old_path)
            for _, new_path, _ in moves:
                self.index.register(new_path)
            logger.info("Renamed folder %s to %s (%d files)", old_prefix, new_prefix, len(moves))
            return node.parent or node

    def seed_demo(self):
        """Replace the tree with the demo tree, giving each file empty content"""
        with self.store.lock:
            self.store.root = tree.build_demo_tree()
            self.index.clear()
            for node in self.store.root.walk_files():
                identifier = self.index.register(node.full_path)
                try:
                    self.index.filename_for(identifier).touch()
                except OSError as e:
                    raise FileOperationError(f"Could not seed {node.full_path}: {e}") from e
