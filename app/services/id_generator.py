import os
import uuid

from logger_config import setup_logger

logger = setup_logger()


class IdentifierGenerationError(Exception):
    """Raised when no random identifier could be produced."""


def generate_file_id(original_filename: str) -> str:
    """Build the on-disk name for an upload: a random UUID plus the original extension.

    ``report.final.pdf`` becomes ``<uuid>.pdf``. The extension is everything
    from the last dot of the base name, so a dotfile such as ``.bashrc`` keeps
    ``.bashrc``; a name without a dot yields the bare UUID.
    """
    try:
        token = str(uuid.uuid4())
    except (OSError, NotImplementedError) as e:
        logger.error(f"Unable to generate UUID: {str(e)}")
        raise IdentifierGenerationError(f"Unable to generate identifier: {str(e)}") from e

    name = os.path.basename(original_filename)
    dot = name.rfind(".")
    ext = name[dot:] if dot >= 0 else ""
    return token + ext
