import re
from datetime import datetime
from pathlib import Path
import aiofiles
from logger_config import setup_logger
import config

logger = setup_logger()


class UploadLog:
    """Append-only record of completed uploads, one line per file."""

    def __init__(self, log_file: Path, log_timestamp: bool = False):
        self.log_file = Path(log_file)
        self.log_timestamp = log_timestamp

    def format_entry(self, filename: str) -> str:
        # One line per upload, whatever the client sent
        entry = re.sub(r"[\r\n]", " ", filename)
        if self.log_timestamp:
            entry += f" [{datetime.now().strftime(config.TIMESTAMP_FORMAT)}]"
        return entry

    async def record(self, filename: str):
        """Append an entry for an upload. Failures are logged, never raised."""
        entry = self.format_entry(filename)
        try:
            async with aiofiles.open(self.log_file, 'a', encoding='utf-8') as f:
                await f.write(f"{entry}\n")
        except OSError as e:
            logger.error(f"Unable to write upload log {self.log_file}: {str(e)}")
