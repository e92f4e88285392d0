import os
import json
from pathlib import Path
from typing import Callable, List
import aiofiles
import aiofiles.os
from fastapi import UploadFile
from logger_config import setup_logger
from app.models.stored_file import StoredFile
from app.services.id_generator import generate_file_id
import config

logger = setup_logger()

# Per-file metadata lives here, next to the uploads but never listed or served
METADATA_DIR_NAME = ".meta"


class StorageError(Exception):
    """Raised when the storage directory cannot be written or enumerated."""


class StoredFileNotFound(Exception):
    """Raised when an identifier does not name a file inside the storage root."""


class UploadTooLarge(Exception):
    """Raised when an upload body exceeds the configured maximum size."""


def _raise_walk_error(error: OSError):
    raise error


class StorageManager:
    def __init__(self, upload_dir: Path, id_generator: Callable[[str], str] = generate_file_id):
        self.upload_dir = Path(upload_dir)
        self.metadata_dir = self.upload_dir / METADATA_DIR_NAME
        self.id_generator = id_generator

    async def initialize(self):
        """Create the storage directory and report what is already on disk."""
        logger.info("Initializing storage manager...")

        self.upload_dir.mkdir(exist_ok=True, parents=True)
        logger.debug(f"Storage directory created/verified: {self.upload_dir}")

        existing = await self.list_files()
        logger.info(f"Found {len(existing)} stored files in {self.upload_dir}")

    def get_metadata_path(self, file_id: str) -> Path:
        return self.metadata_dir / f"{file_id}.json"

    async def store_metadata(self, file_id: str, original_filename: str):
        """Store metadata about the uploaded file."""
        metadata_path = self.get_metadata_path(file_id)
        await aiofiles.os.makedirs(metadata_path.parent, exist_ok=True)
        metadata = {
            "original_filename": original_filename
        }
        async with aiofiles.open(metadata_path, 'w') as f:
            await f.write(json.dumps(metadata))

    async def get_metadata(self, file_id: str) -> dict:
        """Get metadata about the stored file."""
        metadata_path = self.get_metadata_path(file_id)
        try:
            async with aiofiles.open(metadata_path, 'r') as f:
                content = await f.read()
                return json.loads(content)
        except (OSError, json.JSONDecodeError):
            return {}

    async def _remove_partial(self, file_id: str):
        for path in (self.upload_dir / file_id, self.get_metadata_path(file_id)):
            try:
                if await aiofiles.os.path.exists(path):
                    await aiofiles.os.unlink(path)
            except OSError as e:
                logger.warning(f"Could not remove partial file {path}: {str(e)}")

    async def save(self, upload: UploadFile, max_size: int = config.MAX_UPLOAD_SIZE) -> str:
        """Stream an upload into the storage directory.

        Args:
            upload: The uploaded file
            max_size: Maximum number of body bytes accepted

        Returns:
            str: The identifier (on-disk name) of the stored file

        Raises:
            UploadTooLarge: if the body is longer than max_size
            StorageError: if the file cannot be written
        """
        original_filename = upload.filename or ""
        file_id = self.id_generator(original_filename)
        file_path = self.upload_dir / file_id

        content_size = 0
        try:
            # Exclusive create: an identifier collision fails instead of overwriting
            async with aiofiles.open(file_path, 'xb') as f:
                while chunk := await upload.read(config.CHUNK_SIZE):
                    content_size += len(chunk)
                    if content_size > max_size:
                        raise UploadTooLarge(f"Upload exceeds maximum allowed size ({max_size} bytes)")
                    await f.write(chunk)

            await self.store_metadata(file_id, original_filename)
        except FileExistsError as e:
            logger.error(f"Identifier collision for {file_id}: {str(e)}")
            raise StorageError(f"File {file_id} already exists") from e
        except UploadTooLarge:
            await self._remove_partial(file_id)
            raise
        except (OSError, ValueError) as e:
            logger.error(f"Error saving upload {original_filename!r} as {file_id}: {str(e)}", exc_info=True)
            await self._remove_partial(file_id)
            raise StorageError(f"Error saving file: {str(e)}") from e

        logger.debug(f"Stored {content_size} bytes as {file_id}")
        return file_id

    async def list_files(self) -> List[StoredFile]:
        """Scan the storage directory and return every stored file.

        Nested subdirectories are included; order follows the filesystem walk.
        """
        files = []
        try:
            for folder_path, dir_names, file_names in os.walk(self.upload_dir, onerror=_raise_walk_error):
                folder = Path(folder_path)
                if folder == self.upload_dir and METADATA_DIR_NAME in dir_names:
                    dir_names.remove(METADATA_DIR_NAME)
                for name in file_names:
                    file_id = (folder / name).relative_to(self.upload_dir).as_posix()
                    metadata = await self.get_metadata(file_id)
                    files.append(StoredFile(
                        file_id=file_id,
                        filename=metadata.get("original_filename") or name,
                    ))
        except OSError as e:
            raise StorageError(f"Error listing files: {str(e)}") from e
        return files

    def resolve(self, file_id: str) -> Path:
        """Map an identifier to the path of a stored file.

        The resolved path must stay inside the storage root and outside the
        metadata directory.

        Raises:
            StoredFileNotFound: if no such file is stored
        """
        root = self.upload_dir.resolve()
        try:
            candidate = (root / file_id).resolve()
        except (OSError, ValueError, RuntimeError):
            raise StoredFileNotFound(file_id)

        if root not in candidate.parents:
            raise StoredFileNotFound(file_id)
        if candidate.relative_to(root).parts[0] == METADATA_DIR_NAME:
            raise StoredFileNotFound(file_id)
        try:
            is_file = candidate.is_file()
        except OSError:
            is_file = False
        if not is_file:
            raise StoredFileNotFound(file_id)
        return candidate
