from typing import List, Optional
from .models import Node, ROOT_PREFIX
from .error_handling import PathNotFoundError

def split_path(path: str) -> List[str]:
    """
    Split a virtual folder path into the folder names below the root.

    "/files/" -> [], "/files/Loli/Sub/" -> ["Loli", "Sub"]

    Raises:
        PathNotFoundError: If the path is outside the root prefix or ends
            in the middle of a segment (no trailing slash).
    """
    if not path or not path.startswith(ROOT_PREFIX):
        raise PathNotFoundError(f"Path not found: {path}", {"path": path})

    rest = path[len(ROOT_PREFIX):]
    if not rest:
        return []
    if not rest.endswith("/"):
        raise PathNotFoundError(f"Path not found: {path}", {"path": path})

    return rest[:-1].split("/")

def find_folder(root: Node, path: str) -> Optional[Node]:
    """Walk the tree along path, returning the folder node or None"""
    try:
        segments = split_path(path)
    except PathNotFoundError:
        return None

    node = root
    for segment in segments:
        node = next(
            (child for child in node.children
             if child.is_folder and child.name == segment),
            None
        )
        if node is None:
            return None
    return node

def resolve(root: Node, path: str) -> Node:
    """Like find_folder, but raise PathNotFoundError instead of returning None"""
    node = find_folder(root, path)
    if node is None:
        raise PathNotFoundError(f"Path not found: {path}", {"path": path})
    return node

def parent_path(path: str) -> str:
    """Path of the folder containing the folder at path; the root is its own parent"""
    segments = split_path(path)
    if not segments:
        return ROOT_PREFIX
    return ROOT_PREFIX + "".join(f"{segment}/" for segment in segments[:-1])

def join(folder_path: str, name: str) -> str:
    """Full virtual path of a file called name inside folder_path"""
    return folder_path + name
