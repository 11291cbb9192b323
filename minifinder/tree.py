import logging
from typing import Optional
from .models import Node, ROOT_NAME
from .error_handling import DuplicateNameError, NameNotFoundError, InvalidNameError

logger = logging.getLogger(__name__)

NEW_FOLDER_NAME = "NewFolder"

def new_root() -> Node:
    return Node(ROOT_NAME, is_folder=True)

def build_demo_tree() -> Node:
    """Starting tree shown by a fresh server"""
    root = new_root()
    loli = _append(root, Node("Loli", is_folder=True))
    _append(loli, Node("file.txt"))
    _append(root, Node("Holy", is_folder=True))
    _append(root, Node("file.txt"))
    return root

def validate_name(name: str) -> str:
    if not name or name in (".", "..") or "/" in name:
        raise InvalidNameError(f"Invalid name: {name!r}", {"name": name})
    return name

def find_child(parent: Node, name: str, is_folder: Optional[bool] = None) -> Optional[Node]:
    """First child called name, optionally restricted to one kind"""
    for child in parent.children:
        if child.name == name and (is_folder is None or child.is_folder == is_folder):
            return child
    return None

def has_child(parent: Node, name: str) -> bool:
    return find_child(parent, name) is not None

def unique_folder_name(parent: Node) -> str:
    """NewFolder, NewFolder1, NewFolder2, ... whichever is free first"""
    i = 0
    candidate = NEW_FOLDER_NAME
    while has_child(parent, candidate):
        i += 1
        candidate = f"{NEW_FOLDER_NAME}{i}"
    return candidate

def unique_file_name(parent: Node, desired: str) -> str:
    """desired, desired (1), desired (2), ... whichever is free first"""
    i = 0
    candidate = desired
    while has_child(parent, candidate):
        i += 1
        candidate = f"{desired} ({i})"
    return candidate

def _append(parent: Node, child: Node) -> Node:
    child.parent = parent
    parent.children.append(child)
    return child

def add_folder(parent: Node) -> Node:
    name = unique_folder_name(parent)
    folder = _append(parent, Node(name, is_folder=True))
    logger.debug("Added folder %s", folder.path)
    return folder

def add_file(parent: Node, desired_name: str) -> Node:
    name = unique_file_name(parent, validate_name(desired_name))
    node = _append(parent, Node(name))
    logger.debug("Added file %s", node.full_path)
    return node

def delete_file(parent: Node, name: str) -> Optional[Node]:
    """Remove the first file called name; returns None if there was none"""
    node = find_child(parent, name, is_folder=False)
    if node is None:
        return None
    parent.children.remove(node)
    node.parent = None
    return node

def rename_folder(node: Node, new_name: str) -> Node:
    """
    Rename a folder in place.

    The root keeps its fixed path, only its display name changes.
    Descendant paths follow automatically since they are derived.
    """
    validate_name(new_name)
    if node.parent is not None and new_name != node.name and has_child(node.parent, new_name):
        raise DuplicateNameError(
            f"Name already exists: {new_name}", {"name": new_name}
        )
    node.name = new_name
    return node

def rename_file(parent: Node, old_name: str, new_name: str) -> Node:
    validate_name(new_name)
    if has_child(parent, new_name):
        raise DuplicateNameError(
            f"Name already exists: {new_name}", {"name": new_name}
        )
    node = find_child(parent, old_name, is_folder=False)
    if node is None:
        raise NameNotFoundError(
            f"File not found: {old_name}", {"name": old_name}
        )
    node.name = new_name
    return node
