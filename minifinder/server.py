from contextlib import asynccontextmanager
import os
import mimetypes
from urllib.parse import quote
import logging
from typing import Optional
from fastapi import FastAPI, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
import uvicorn
from .config import Settings
from .store import Store
from .file_operations import FileOperationService
from .watcher import ContentWatcher
from .models import ROOT_PREFIX
from .views import render_folder, url_for_path
from .error_handling import (
    setup_logging,
    handle_error,
    log_operation,
    FinderError,
)

logger = logging.getLogger(__name__)

def get_service(request: Request) -> FileOperationService:
    return request.app.state.service

def redirect(path: str) -> RedirectResponse:
    return RedirectResponse(url_for_path(path), status_code=302)

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    store = Store(settings.data_dir, settings.download_dir)
    service = FileOperationService(store, settings.max_upload_bytes)
    watcher = ContentWatcher(store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.initialize()
        if settings.seed_demo:
            service.seed_demo()
        if settings.watch_data_dir:
            watcher.start()
        logger.info("minifinder ready, data in %s", store.data_dir)
        try:
            yield
        finally:
            watcher.stop()
            logger.info("minifinder stopped")

    app = FastAPI(title="minifinder", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.service = service
    app.state.watcher = watcher

    @app.exception_handler(FinderError)
    async def finder_error_handler(request: Request, exc: FinderError):
        handle_error(logger, exc, request.url.path)
        return PlainTextResponse(str(exc), status_code=exc.status_code)

    @app.get("/")
    def index():
        return redirect(ROOT_PREFIX)

    @app.get("/health")
    def health_check():
        """Simple health check endpoint"""
        return {"status": "ok", "service": "minifinder"}

    @app.get("/tree")
    def get_tree(service: FileOperationService = Depends(get_service)):
        return service.tree()

    @app.get(ROOT_PREFIX + "{subpath:path}", response_class=HTMLResponse)
    def show_folder(subpath: str, service: FileOperationService = Depends(get_service)):
        folder = service.describe(ROOT_PREFIX + subpath)
        return HTMLResponse(render_folder(folder))

    @app.get("/content/{full_path:path}")
    def get_content(full_path: str, service: FileOperationService = Depends(get_service)):
        folder_path, _, filename = ("/" + full_path).rpartition("/")
        content = service.read_content(folder_path + "/", filename)
        media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        return Response(
            content,
            media_type=media_type,
            headers={"Content-Disposition": f"inline; filename*=utf-8''{quote(filename)}"},
        )

    @app.post("/createFolder")
    def create_folder(
        path: str = Form(...),
        service: FileOperationService = Depends(get_service),
    ):
        log_operation(logger, "create_folder", path=path)
        folder = service.create_folder(path)
        return redirect(folder.parent.path)

    @app.post("/uploadFile")
    def upload_file(
        path: str = Form(...),
        my_file: UploadFile = File(..., alias="myFile"),
        service: FileOperationService = Depends(get_service),
    ):
        filename = os.path.basename((my_file.filename or "").replace("\\", "/"))
        log_operation(logger, "upload_file", path=path, filename=filename, size=my_file.size)
        try:
            node = service.upload(path, filename, my_file.file)
        finally:
            my_file.file.close()
        return redirect(node.path)

    @app.post("/downloadFile")
    def download_file(
        path: str = Form(...),
        filename: str = Form(...),
        service: FileOperationService = Depends(get_service),
    ):
        log_operation(logger, "download_file", path=path, filename=filename)
        service.download(path, filename)
        return redirect(path)

    @app.post("/deleteFile")
    def delete_file(
        path: str = Form(...),
        filename: str = Form(...),
        service: FileOperationService = Depends(get_service),
    ):
        log_operation(logger, "delete_file", path=path, filename=filename)
        service.delete(path, filename)
        return redirect(path)

    @app.post("/changeFolderName")
    def change_folder_name(
        folder_path: str = Form(..., alias="folderPath"),
        folder_name: str = Form(..., alias="folderName"),
        service: FileOperationService = Depends(get_service),
    ):
        log_operation(logger, "change_folder_name", folder_path=folder_path, folder_name=folder_name)
        parent = service.rename_folder(folder_path, folder_name)
        return redirect(parent.path)

    @app.post("/changeFileName")
    def change_file_name(
        file_path: str = Form(..., alias="filePath"),
        file_name: str = Form(..., alias="fileName"),
        old_file_name: str = Form(..., alias="oldFileName"),
        service: FileOperationService = Depends(get_service),
    ):
        log_operation(logger, "change_file_name", file_path=file_path, old=old_file_name, new=file_name)
        node = service.rename_file(file_path, old_file_name, file_name)
        return redirect(node.path)

    return app

def main():
    settings = Settings()
    setup_logging(settings.log_level, settings.log_file or None)
    try:
        logger.info(f"Starting server on http://{settings.host}:{settings.port}{ROOT_PREFIX}")
        uvicorn.run(
            create_app(settings),
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
            access_log=True
        )
    except Exception as e:
        logger.error(f"Failed to start server: {str(e)}")
        raise

if __name__ == "__main__":
    main()
