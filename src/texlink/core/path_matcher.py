"""Resolve texture paths embedded in materials against loaded assets."""

import logging
from typing import Iterable, Optional

from .models import TextureAsset
from .texture_parser import strip_extension, texture_basename

logger = logging.getLogger(__name__)


def match_texture_path(
    referenced_path: str, assets: Iterable[TextureAsset]
) -> Optional[TextureAsset]:
    """Find the asset a material's embedded texture path refers to.

    Tried in order, first hit wins: exact path, same file name, same file
    name ignoring extension, then either file name containing the other.
    Comparisons are case-insensitive.

    Args:
        referenced_path: Path string stored on the material.
        assets: Candidate assets.

    Returns:
        Optional[TextureAsset]: Matching asset, or None.
    """
    if not referenced_path:
        return None
    candidates = [asset for asset in assets if asset.is_valid]
    if not candidates:
        return None

    path_lower = str(referenced_path).replace("\\", "/").lower()
    for asset in candidates:
        if asset.key.replace("\\", "/").lower() == path_lower:
            logger.debug("Exact path match: %s", asset.key)
            return asset

    basename = texture_basename(path_lower)
    if not basename:
        return None
    for asset in candidates:
        if texture_basename(asset.key).lower() == basename:
            logger.debug("Basename match: %s -> %s", referenced_path, asset.key)
            return asset

    stem = strip_extension(basename)
    if stem:
        for asset in candidates:
            if strip_extension(texture_basename(asset.key).lower()) == stem:
                logger.debug("Stem match: %s -> %s", referenced_path, asset.key)
                return asset

    for asset in candidates:
        key_basename = texture_basename(asset.key).lower()
        if not key_basename:
            continue
        if basename in key_basename or key_basename in basename:
            logger.debug("Partial match: %s -> %s", referenced_path, asset.key)
            return asset

    logger.debug("No texture matches referenced path: %s", referenced_path)
    return None
