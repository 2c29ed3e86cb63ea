from fastapi import UploadFile
from core.errors import BadRequest

CHUNK_SIZE = 1024 * 1024


async def read_upload(upload: UploadFile, max_mb: int = 10) -> bytes:
    """Read an uploaded file into memory, rejecting anything over ``max_mb``."""
    limit = max_mb * 1024 * 1024
    chunks = []
    size = 0
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            raise BadRequest(f"File too large. Max size is {max_mb} MB.")
        chunks.append(chunk)
    await upload.seek(0)
    return b"".join(chunks)
