from fastapi import Request
from config import Settings
from app.services.storage_manager import StorageManager
from app.services.upload_log import UploadLog


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage_manager(request: Request) -> StorageManager:
    return request.app.state.storage_manager


def get_upload_log(request: Request) -> UploadLog:
    return request.app.state.upload_log
