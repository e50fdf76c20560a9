"""
Opaque blob store for submission attachments.

The core only ever handles references: ``store`` returns one, ``fetch`` turns
it back into bytes. Nothing about the content is interpreted here.
"""

import logging
import re
import secrets
from pathlib import Path
from typing import Protocol

from classroom.core.config import ATTACHMENT_DIR
from classroom.core.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)

_REFERENCE_RE = re.compile(r"^[0-9a-f]{32}$")


class AttachmentStore(Protocol):
    def store(self, data: bytes) -> str:
        ...

    def fetch(self, reference: str) -> bytes:
        ...


class LocalAttachmentStore:
    def __init__(self, root: Path = ATTACHMENT_DIR):
        self.root = Path(root)

    def _path(self, reference: str) -> Path:
        # references are generated here; anything else could escape the root
        if not _REFERENCE_RE.match(reference):
            raise NotFound("Attachment not found")
        return self.root / reference

    def store(self, data: bytes) -> str:
        if not data:
            raise ValidationFailed("Attachment is empty")
        self.root.mkdir(parents=True, exist_ok=True)
        reference = secrets.token_hex(16)
        self._path(reference).write_bytes(data)
        logger.info("stored attachment %s (%d bytes)", reference, len(data))
        return reference

    def fetch(self, reference: str) -> bytes:
        path = self._path(reference)
        if not path.is_file():
            raise NotFound("Attachment not found")
        return path.read_bytes()


def get_attachment_store() -> AttachmentStore:
    return LocalAttachmentStore()
