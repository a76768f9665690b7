import time
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

import config


def photo_filename(original: str, *, now: Optional[float] = None) -> str:
    """``<epoch-millis><ext>``, keeping the uploaded file's extension."""
    millis = int((now if now is not None else time.time()) * 1000)
    return f"{millis}{Path(original or '').suffix.lower()}"


async def save_photo(photo: Optional[UploadFile], *, upload_dir: Path = config.UPLOAD_DIR) -> Optional[str]:
    if photo is None or not photo.filename:
        return None

    data = await photo.read()
    name = photo_filename(photo.filename)
    stem, suffix = Path(name).stem, Path(name).suffix
    target = upload_dir / name
    # two uploads in the same millisecond
    n = 1
    while target.exists():
        name = f"{stem}-{n}{suffix}"
        target = upload_dir / name
        n += 1
    target.write_bytes(data)
    return name
