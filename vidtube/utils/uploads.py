import shutil
from pathlib import Path
from typing import Optional
from uuid import uuid4

from fastapi import UploadFile

from vidtube.core.config import settings


async def stage_upload(file: Optional[UploadFile], *, tmp_dir: Optional[str] = None) -> Optional[Path]:
    """
    Recopie un UploadFile dans le dossier temporaire local et retourne son chemin.
    Le MediaStore supprime le fichier une fois l'envoi tenté.
    """
    if file is None or not file.filename:
        return None
    target_dir = Path(tmp_dir or settings.UPLOAD_TMP_DIR)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / f"{uuid4().hex}{Path(file.filename).suffix}"
    with target.open("wb") as out:
        await file.seek(0)
        shutil.copyfileobj(file.file, out)
    return target


def discard_staged(*paths: Optional[Path]) -> None:
    for path in paths:
        if path is not None:
            path.unlink(missing_ok=True)
