ROOT_NAME = "My finder"
ROOT_PREFIX = "/files/"

class Node:
    """A folder or file in the virtual tree.

    Paths are derived from the parent chain, so renaming a folder is seen
    by every descendant without rewriting stored fields.
    """
    __slots__ = ['name', 'is_folder', 'children', 'parent']

    def __init__(self, name, is_folder=False, parent=None):
        self.name = name
        self.is_folder = is_folder
        self.children = []  # Only meaningful for folders
        self.parent = parent

    @property
    def is_root(self):
        return self.parent is None

    @property
    def path(self) -> str:
        """Own path for folders, containing folder's path for files"""
        if not self.is_folder:
            return self.parent.path if self.parent else ROOT_PREFIX
        if self.parent is None:
            return ROOT_PREFIX
        return self.parent.path + self.name + "/"

    @property
    def full_path(self) -> str:
        if self.is_folder:
            return self.path
        return self.path + self.name

    def files(self):
        return [child for child in self.children if not child.is_folder]

    def folders(self):
        return [child for child in self.children if child.is_folder]

    def walk_files(self):
        """Yield every file below this folder, depth first"""
        for child in self.children:
            if child.is_folder:
                yield from child.walk_files()
            else:
                yield child

    def to_dict(self):
        data = {
            "name": self.name,
            "path": self.path,
            "is_folder": self.is_folder,
        }
        if self.is_folder:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    def __repr__(self):
        kind = "Folder" if self.is_folder else "File"
        return f"<{kind} {self.full_path!r}>"
