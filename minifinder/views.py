from html import escape
from urllib.parse import quote
from typing import Dict, Any
from .models import ROOT_PREFIX
from .paths import parent_path

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ font-family: sans-serif; margin: 2em; }}
li {{ margin: 0.3em 0; }}
form {{ display: inline; margin-left: 0.5em; }}
</style>
</head>
<body>
<h1>{title}</h1>
<p>{path}{up}</p>
<form action="/createFolder" method="post">
<input type="hidden" name="path" value="{path}">
<button type="submit">New folder</button>
</form>
<form action="/uploadFile" method="post" enctype="multipart/form-data">
<input type="hidden" name="path" value="{path}">
<input type="file" name="myFile">
<button type="submit">Upload</button>
</form>
<form action="/changeFolderName" method="post">
<input type="hidden" name="folderPath" value="{path}">
<input type="text" name="folderName" value="{title}">
<button type="submit">Rename folder</button>
</form>
<ul>
{items}
</ul>
</body>
</html>
"""

FOLDER_TEMPLATE = '<li>&#128193; <a href="{href}">{name}/</a></li>'

FILE_TEMPLATE = """<li>&#128196; <a href="{href}">{name}</a>
<form action="/downloadFile" method="post">
<input type="hidden" name="path" value="{path}">
<input type="hidden" name="filename" value="{name}">
<button type="submit">Download</button>
</form>
<form action="/deleteFile" method="post">
<input type="hidden" name="path" value="{path}">
<input type="hidden" name="filename" value="{name}">
<button type="submit">Delete</button>
</form>
<form action="/changeFileName" method="post">
<input type="hidden" name="filePath" value="{path}">
<input type="hidden" name="oldFileName" value="{name}">
<input type="text" name="fileName" value="{name}">
<button type="submit">Rename</button>
</form>
</li>"""

def url_for_path(path: str) -> str:
    return quote(path)

def render_folder(folder: Dict[str, Any]) -> str:
    """Render a folder snapshot (Node.to_dict) as an HTML page"""
    path = folder["path"]
    items = []
    for child in folder.get("children", []):
        if child["is_folder"]:
            items.append(FOLDER_TEMPLATE.format(
                href=escape(url_for_path(child["path"])),
                name=escape(child["name"])
            ))
        else:
            items.append(FILE_TEMPLATE.format(
                href=escape("/content" + url_for_path(child["path"] + child["name"])),
                path=escape(path),
                name=escape(child["name"])
            ))

    up = ""
    if path != ROOT_PREFIX:
        parent = parent_path(path)
        up = f' (<a href="{escape(url_for_path(parent))}">up</a>)'

    return PAGE_TEMPLATE.format(
        title=escape(folder["name"]),
        path=escape(path),
        up=up,
        items="\n".join(items)
    )
