"""Texture asset sources: ZIP archives and folders.

Entries are turned into ``TextureAsset`` objects through an optional decoder
callable. The default keeps the raw bytes as the image handle. An entry the
decoder rejects is logged and left out of the collection, so one bad file
never aborts a load.
"""

import logging
import zipfile
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .exceptions import AssetDecodeError, FileSystemError
from .filesystem import DefaultFileSystem, FileSystem
from .models import TextureAsset
from .settings import DEFAULT_SETTINGS, ResolverSettings
from .texture_parser import texture_basename

logger = logging.getLogger(__name__)

TextureDecoder = Callable[[str, bytes], Any]


def _raw_bytes(name: str, data: bytes) -> bytes:
    return data


def is_texture_file(
    filename: str, settings: Optional[ResolverSettings] = None
) -> bool:
    """Return True when the file extension is a known texture format."""
    if not filename or not isinstance(filename, str):
        return False
    active = settings or DEFAULT_SETTINGS
    lower_name = filename.lower()
    return any(lower_name.endswith(ext) for ext in active.texture_extensions)


def _decode(name: str, data: bytes, decoder: TextureDecoder) -> Any:
    try:
        handle = decoder(name, data)
    except Exception as exc:
        raise AssetDecodeError(
            "Failed to decode texture",
            details={"name": name, "error": str(exc), "type": type(exc).__name__},
        ) from exc
    if handle is None:
        raise AssetDecodeError("Decoder returned no image", details={"name": name})
    return handle


def _build_assets(
    entries: Iterable[Tuple[str, Callable[[], bytes]]],
    decoder: Optional[TextureDecoder],
    settings: Optional[ResolverSettings],
) -> List[TextureAsset]:
    active_decoder = decoder or _raw_bytes
    assets: List[TextureAsset] = []
    seen = set()
    for key, read in entries:
        if not is_texture_file(key, settings):
            continue
        if key.lower() in seen:
            logger.debug("Duplicate texture key ignored: %s", key)
            continue
        try:
            handle = _decode(key, read(), active_decoder)
        except (AssetDecodeError, OSError, zipfile.BadZipFile) as exc:
            logger.warning("Failed to load texture %s: %s", key, exc)
            continue
        seen.add(key.lower())
        assets.append(
            TextureAsset(key=key, filename=texture_basename(key), handle=handle)
        )
        logger.debug("Loaded texture: %s", key)
    return assets


def load_textures_from_zip(
    archive_path: Path,
    decoder: Optional[TextureDecoder] = None,
    settings: Optional[ResolverSettings] = None,
) -> List[TextureAsset]:
    """Read every texture entry of a ZIP archive.

    Args:
        archive_path: Path to the ZIP file.
        decoder: Optional callable turning ``(name, bytes)`` into an image
                 handle.
        settings: Optional settings providing the texture extensions.

    Returns:
        List[TextureAsset]: Assets keyed by their archive path, archive order.

    Raises:
        FileSystemError: If the archive is missing or not a ZIP file.
    """
    path = Path(archive_path)
    try:
        with zipfile.ZipFile(path) as archive:
            infos = [info for info in archive.infolist() if not info.is_dir()]

            def _reader(info: zipfile.ZipInfo) -> Callable[[], bytes]:
                return lambda: archive.read(info)

            assets = _build_assets(
                ((info.filename, _reader(info)) for info in infos),
                decoder,
                settings,
            )
    except (OSError, zipfile.BadZipFile) as exc:
        raise FileSystemError(
            f"Failed to open texture archive: {path}",
            details={"path": str(path), "error": str(exc)},
        ) from exc

    logger.info("Loaded %d textures from %s", len(assets), path.name)
    return assets


def load_textures_from_directory(
    directory: Path,
    decoder: Optional[TextureDecoder] = None,
    settings: Optional[ResolverSettings] = None,
    fs: Optional[FileSystem] = None,
) -> List[TextureAsset]:
    """Read every texture file below a directory.

    Keys are POSIX paths relative to the directory, in sorted order.

    Raises:
        FileSystemError: If the directory does not exist.
    """
    file_system = fs or DefaultFileSystem()
    root = Path(directory)
    if not file_system.path_exists(root) or not file_system.is_directory(root):
        raise FileSystemError(
            f"Texture directory not found: {root}", details={"path": str(root)}
        )
    root = file_system.validate_path(root)

    files = sorted(path for path in root.rglob("*") if path.is_file())
    assets = _build_assets(
        ((path.relative_to(root).as_posix(), path.read_bytes) for path in files),
        decoder,
        settings,
    )
    logger.info("Loaded %d textures from %s", len(assets), root)
    return assets


def load_textures(
    source: Path,
    decoder: Optional[TextureDecoder] = None,
    settings: Optional[ResolverSettings] = None,
    fs: Optional[FileSystem] = None,
) -> List[TextureAsset]:
    """Load textures from a ZIP archive or a directory."""
    file_system = fs or DefaultFileSystem()
    path = Path(source)
    if file_system.is_directory(path):
        return load_textures_from_directory(path, decoder, settings, file_system)
    return load_textures_from_zip(path, decoder, settings)
