"""Blob store for uploaded verification documents. Only the returned reference is persisted."""
import logging
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/png": ".png",
}

REF_PREFIX = "local://"


class LocalBlobStore:
    """Writes blobs under a root directory, one subdirectory per owner."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def put(self, owner_id: int, content: bytes, content_type: str | None = None) -> str:
        name = f"{uuid.uuid4().hex}{_EXTENSIONS.get(content_type or '', '')}"
        folder = self.root / str(owner_id)
        folder.mkdir(parents=True, exist_ok=True)
        (folder / name).write_bytes(content)
        logger.info("Stored blob owner_id=%s name=%s bytes=%d", owner_id, name, len(content))
        return f"{REF_PREFIX}{owner_id}/{name}"

    def path_for(self, ref: str) -> Path:
        if not ref.startswith(REF_PREFIX):
            raise ValueError(f"not a local blob reference: {ref}")
        relative = Path(ref[len(REF_PREFIX):])
        if relative.is_absolute() or ".." in relative.parts:
            raise ValueError(f"invalid blob reference: {ref}")
        return self.root / relative

    def delete(self, ref: str) -> None:
        self.path_for(ref).unlink(missing_ok=True)
