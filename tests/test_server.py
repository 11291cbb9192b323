import pytest
from fastapi.testclient import TestClient
from minifinder.config import Settings
from minifinder.server import create_app

@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=str(tmp_path / "data"),
        download_dir=str(tmp_path / "download"),
        log_file="",
        seed_demo=True,
        watch_data_dir=False,
    )

@pytest.fixture
def client(settings):
    """Test client with the lifespan (directory setup, demo tree) running"""
    with TestClient(create_app(settings)) as client:
        yield client

def post(client, url, **data):
    return client.post(url, data=data, follow_redirects=False)

def upload(client, path, filename, content):
    return client.post(
        "/uploadFile",
        data={"path": path},
        files={"myFile": (filename, content)},
        follow_redirects=False,
    )

def child_names(client, path="/files/"):
    tree = client.get("/tree").json()
    node = tree
    for segment in path[len("/files/"):].split("/")[:-1]:
        node = next(c for c in node["children"] if c["name"] == segment)
    return [c["name"] for c in node["children"]]

class TestViews:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "minifinder"}

    def test_index_redirects_to_root(self, client):
        response = client.get("/", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/files/"

    def test_root_view(self, client):
        response = client.get("/files/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "My finder" in response.text
        assert "Loli" in response.text
        assert "file.txt" in response.text

    def test_nested_view(self, client):
        response = client.get("/files/Loli/")
        assert response.status_code == 200
        assert "file.txt" in response.text

    @pytest.mark.parametrize("url", ["/files/Missing/", "/files/Loli", "/files/file.txt/"])
    def test_unknown_path(self, client, url):
        assert client.get(url).status_code == 404

    def test_tree(self, client):
        tree = client.get("/tree").json()
        assert tree["path"] == "/files/"
        assert [c["name"] for c in tree["children"]] == ["Loli", "Holy", "file.txt"]

class TestFolderEndpoints:
    def test_create_folder_twice(self, client):
        first = post(client, "/createFolder", path="/files/")
        second = post(client, "/createFolder", path="/files/")
        assert first.status_code == second.status_code == 302
        assert first.headers["location"] == "/files/"
        assert child_names(client)[-2:] == ["NewFolder", "NewFolder1"]

    def test_create_folder_unknown_path(self, client):
        response = post(client, "/createFolder", path="/files/Missing/")
        assert response.status_code == 404

    def test_change_folder_name(self, client):
        response = post(client, "/changeFolderName", folderPath="/files/Loli/", folderName="Renamed")
        assert response.status_code == 302
        assert response.headers["location"] == "/files/"
        assert client.get("/files/Renamed/").status_code == 200
        assert client.get("/files/Loli/").status_code == 404

    def test_change_nested_folder_name_redirects_to_parent(self, client):
        post(client, "/createFolder", path="/files/Holy/")
        response = post(client, "/changeFolderName", folderPath="/files/Holy/NewFolder/", folderName="Inner")
        assert response.headers["location"] == "/files/Holy/"

    def test_change_folder_name_duplicate(self, client):
        response = post(client, "/changeFolderName", folderPath="/files/Loli/", folderName="Holy")
        assert response.status_code == 500
        assert "Holy" in response.text

    def test_folder_name_with_space_is_quoted(self, client):
        post(client, "/changeFolderName", folderPath="/files/Holy/", folderName="Holy Moly")
        post(client, "/createFolder", path="/files/Holy Moly/")
        response = post(client, "/createFolder", path="/files/Holy Moly/NewFolder/")
        assert response.headers["location"] == "/files/Holy%20Moly/NewFolder/"
        assert client.get("/files/Holy%20Moly/NewFolder/").status_code == 200

class TestFileEndpoints:
    def test_upload_and_download(self, client, settings, tmp_path):
        response = upload(client, "/files/Holy/", "hello.txt", b"hello world")
        assert response.status_code == 302
        assert response.headers["location"] == "/files/Holy/"

        response = post(client, "/downloadFile", path="/files/Holy/", filename="hello.txt")
        assert response.status_code == 302
        assert (tmp_path / "download" / "hello.txt").read_bytes() == b"hello world"

    def test_upload_collision(self, client):
        upload(client, "/files/", "file.txt", b"again")
        assert child_names(client)[-1] == "file.txt (1)"

    def test_upload_unknown_folder(self, client):
        response = upload(client, "/files/Missing/", "a.txt", b"x")
        assert response.status_code == 404

    def test_upload_too_large(self, settings, tmp_path):
        settings.max_upload_bytes = 3
        with TestClient(create_app(settings)) as client:
            response = upload(client, "/files/", "big.bin", b"0123456789")
            assert response.status_code == 500
            assert "big.bin" not in child_names(client)

    def test_inline_content(self, client):
        upload(client, "/files/Loli/", "inline.txt", b"inline bytes")
        response = client.get("/content/files/Loli/inline.txt")
        assert response.status_code == 200
        assert response.content == b"inline bytes"

    def test_inline_content_removed_from_disk(self, client, tmp_path):
        """A content file deleted behind the service's back is a 404, not a crash"""
        upload(client, "/files/Loli/", "gone.txt", b"bytes")
        for data_file in (tmp_path / "data").iterdir():
            if data_file.read_bytes() == b"bytes":
                data_file.unlink()
        response = client.get("/content/files/Loli/gone.txt")
        assert response.status_code == 404

    def test_inline_content_is_inline(self, client):
        upload(client, "/files/", "page.txt", b"text")
        response = client.get("/content/files/page.txt")
        assert response.headers["content-disposition"].startswith("inline")
        assert response.headers["content-type"].startswith("text/plain")

    def test_inline_content_missing(self, client):
        assert client.get("/content/files/Loli/none.txt").status_code == 404

    def test_download_unknown_file(self, client):
        response = post(client, "/downloadFile", path="/files/", filename="nope.txt")
        assert response.status_code == 404

    def test_delete(self, client):
        response = post(client, "/deleteFile", path="/files/", filename="file.txt")
        assert response.status_code == 302
        assert "file.txt" not in child_names(client)
        again = post(client, "/deleteFile", path="/files/", filename="file.txt")
        assert again.status_code == 302

    def test_change_file_name(self, client):
        upload(client, "/files/Holy/", "A.txt", b"content of A")
        response = post(client, "/changeFileName", filePath="/files/Holy/", fileName="B.txt", oldFileName="A.txt")
        assert response.status_code == 302
        assert child_names(client, "/files/Holy/") == ["B.txt"]
        assert client.get("/content/files/Holy/B.txt").content == b"content of A"
        assert client.get("/content/files/Holy/A.txt").status_code == 404

    def test_change_file_name_duplicate(self, client):
        upload(client, "/files/Holy/", "A.txt", b"a")
        upload(client, "/files/Holy/", "B.txt", b"b")
        response = post(client, "/changeFileName", filePath="/files/Holy/", fileName="B.txt", oldFileName="A.txt")
        assert response.status_code == 500
        assert "B.txt" in response.text
        assert child_names(client, "/files/Holy/") == ["A.txt", "B.txt"]

    def test_change_file_name_missing(self, client):
        response = post(client, "/changeFileName", filePath="/files/Holy/", fileName="B.txt", oldFileName="A.txt")
        assert response.status_code == 500

    def test_change_file_name_invalid(self, client):
        response = post(client, "/changeFileName", filePath="/files/", fileName="a/b", oldFileName="file.txt")
        assert response.status_code == 400

    def test_startup_wipes_previous_data(self, settings, tmp_path):
        (tmp_path / "data").mkdir()
        (tmp_path / "data" / "leftover").write_text("old")
        with TestClient(create_app(settings)):
            assert not (tmp_path / "data" / "leftover").exists()
