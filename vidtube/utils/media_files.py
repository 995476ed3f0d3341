import datetime
import json
import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Tuple, Set
from uuid import uuid4

import filetype


# Allow-lists
ALLOWED_IMAGE_MIME: Set[str] = {"image/jpeg", "image/png", "image/webp", "image/avif", "image/gif"}

ALLOWED_VIDEO_MIME: Set[str] = {
    "video/mp4",
    "video/webm",
    "video/ogg",
    "video/quicktime",   # mov
    "video/x-matroska",  # mkv (selon filetype)
}


def detect_mime_and_ext(path: Path) -> Tuple[str, str]:
    """
    Détecte le type réel via 'filetype' (lit seulement l'en-tête du fichier).
    Retourne (real_mime, ext_with_dot).
    """
    kind = filetype.guess(str(path))
    real_mime = kind.mime if kind else "application/octet-stream"
    ext = "." + (kind.extension if kind else "bin")
    return real_mime, ext


def validate_file(
    path: Path,
    *,
    max_mb: int,
    allowed_mime: Set[str],
) -> Tuple[str, str, int]:
    """
    Retourne (real_mime, ext_with_dot, size_bytes).
    Lève ValueError si invalide.
    """
    if not path.is_file():
        raise ValueError("Fichier introuvable")
    size = os.path.getsize(path)
    if size == 0:
        raise ValueError("Fichier vide")
    if size > max_mb * 1024 * 1024:
        raise ValueError(f"Taille invalide (max {max_mb} MB)")

    real_mime, ext = detect_mime_and_ext(path)
    if real_mime not in allowed_mime:
        raise ValueError(f"Type non autorisé: {real_mime}")
    return real_mime, ext, size


def build_object_key(*, prefix: str, owner_id: Optional[int], ext_with_dot: str) -> str:
    """
    Construit une clé S3 stable et lisible.
    Exemple:
      prefix="videos" -> videos/users/12/2025-12-18/<uuid>.mp4
    """
    today = datetime.date.today().isoformat()
    safe_owner = owner_id if owner_id is not None else "anonymous"
    ext = ext_with_dot if ext_with_dot.startswith(".") else f".{ext_with_dot}"
    return f"{prefix}/users/{safe_owner}/{today}/{uuid4().hex}{ext}"


def probe_duration(path: Path, *, ffprobe_bin: str = "ffprobe") -> Optional[float]:
    """
    Durée (secondes) lue par ffprobe, ou None si indisponible / illisible
    (images, ffprobe absent du PATH...).
    """
    ffprobe = shutil.which(ffprobe_bin)
    if ffprobe is None:
        return None
    probe_cmd = [
        ffprobe,
        "-v",
        "error",
        "-show_entries",
        "format=duration",
        "-of",
        "json",
        str(path),
    ]
    result = subprocess.run(probe_cmd, capture_output=True, text=True, check=False)
    if result.returncode != 0:
        return None
    try:
        data = json.loads(result.stdout or "{}")
        duration = float(data.get("format", {}).get("duration"))
    except (TypeError, ValueError):
        return None
    return duration if duration >= 0 else None
