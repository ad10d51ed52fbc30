"""Texture to material resolution engine.

Each slot of each material is filled by the first tier that finds a texture
for it, in decreasing order of confidence:

1. index: the normalized material name owns the slot in the texture index;
2. referenced path: the material already points at a texture file;
3. strict prefix (base color only): a texture prefix equals the material name
   or one extends the other (``whitebody`` / ``body``);
4. fuzzy: an equal or ends-with prefix first, then edit distance similarity
   above a per-slot threshold.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple

from .exceptions import TexLinkError
from .models import MatchTier, ResolutionOutcome, SlotAssignment, TextureAsset
from .path_matcher import match_texture_path
from .scene import MaterialTarget
from .settings import DEFAULT_SETTINGS, ResolverSettings
from .similarity import similarity
from .slots import MapSlot
from .texture_index import MaterialTextureIndex, build_texture_index
from .texture_parser import texture_basename

logger = logging.getLogger(__name__)

_AFFIX_EXACT = 0
_AFFIX_ENDS = 1
_AFFIX_STARTS = 2


@dataclass
class _MaterialState:
    """Bookkeeping for one material during a resolve run.

    Attributes:
        outcome: Outcome reported for the material.
        chosen: Textures applied per slot.
        refused: Candidates a target rejected, with their tier and score,
                 retried on further meshes sharing the material.
    """

    outcome: ResolutionOutcome
    chosen: Dict[MapSlot, TextureAsset] = field(default_factory=dict)
    refused: Dict[MapSlot, Tuple[TextureAsset, MatchTier, float]] = field(
        default_factory=dict
    )

    def is_settled(self, slot: MapSlot) -> bool:
        return slot in self.chosen or slot in self.refused


class TextureResolver:
    """Resolve a texture collection onto scene materials.

    The index is built once per texture collection; ``resolve`` can then be
    called for each model loaded against that collection.

    Attributes:
        settings: Active resolver settings.
        assets: Texture assets in source order.
        index: Material texture index built from the assets.
    """

    def __init__(
        self,
        assets: Iterable[TextureAsset],
        settings: Optional[ResolverSettings] = None,
    ) -> None:
        self.settings = settings or DEFAULT_SETTINGS
        self.assets: List[TextureAsset] = list(assets)
        self.index: MaterialTextureIndex = build_texture_index(
            self.assets, self.settings
        )
        self._valid_assets = [asset for asset in self.assets if asset.is_valid]

    def resolve(self, targets: Iterable[MaterialTarget]) -> List[ResolutionOutcome]:
        """Resolve and apply textures for every material target.

        Targets sharing a ``material_id`` are resolved once; the chosen
        textures are then applied to each further target so per-mesh side
        effects run for every mesh. A slot the first target refused is
        offered again to each further target.

        Args:
            targets: Material targets, typically one per mesh and material.

        Returns:
            List[ResolutionOutcome]: One outcome per distinct material.
        """
        states: Dict[Hashable, _MaterialState] = {}

        for target in targets:
            material_id = target.material_id
            if material_id in states:
                self._replay(target, states[material_id])
                continue
            states[material_id] = self._resolve_target(target)

        results = [state.outcome for state in states.values()]
        summary = format_mapping_summary(results, self.index)
        for line in summary.splitlines():
            logger.info(line)
        return results

    def _resolve_target(self, target: MaterialTarget) -> _MaterialState:
        name = target.name or ""
        state = _MaterialState(outcome=ResolutionOutcome(material_name=name))
        normalized = self.settings.naming.normalize(name)
        if not normalized:
            logger.debug("Skipping material without a usable name: %r", name)
            return state

        for slot, asset in self.index.get(normalized).items():
            self._apply(target, state, slot, asset, MatchTier.INDEX)

        for slot in MapSlot:
            if state.is_settled(slot):
                continue
            reference = target.slot_reference(slot)
            if not reference:
                continue
            asset = match_texture_path(reference, self._valid_assets)
            if asset is None:
                logger.debug(
                    "No texture for %s reference '%s' on '%s'.",
                    slot.value,
                    reference,
                    name,
                )
                continue
            self._apply(target, state, slot, asset, MatchTier.REFERENCED_PATH)

        if not state.is_settled(MapSlot.BASE_COLOR):
            asset = self._strict_prefix_match(normalized)
            if asset is not None:
                self._apply(
                    target, state, MapSlot.BASE_COLOR, asset, MatchTier.STRICT_PREFIX
                )

        for slot in MapSlot:
            if state.is_settled(slot):
                continue
            match = self._fuzzy_match(normalized, slot)
            if match is None:
                continue
            asset, score = match
            self._apply(target, state, slot, asset, MatchTier.FUZZY, score=score)

        if not state.chosen:
            logger.debug("No textures found for material '%s' (%s).", name, normalized)
        return state

    def _replay(self, target: MaterialTarget, state: _MaterialState) -> None:
        for slot, asset in list(state.chosen.items()):
            if self._assign(target, slot, asset):
                logger.debug(
                    "Re-applied %s to another mesh using '%s'.",
                    slot.value,
                    state.outcome.material_name,
                )

        for slot, (asset, tier, score) in list(state.refused.items()):
            if not self._assign(target, slot, asset):
                continue
            del state.refused[slot]
            self._record(state, slot, asset, tier, score)

    def _apply(
        self,
        target: MaterialTarget,
        state: _MaterialState,
        slot: MapSlot,
        asset: TextureAsset,
        tier: MatchTier,
        score: float = 1.0,
    ) -> None:
        if not self._assign(target, slot, asset):
            state.refused[slot] = (asset, tier, score)
            return
        self._record(state, slot, asset, tier, score)

    def _record(
        self,
        state: _MaterialState,
        slot: MapSlot,
        asset: TextureAsset,
        tier: MatchTier,
        score: float,
    ) -> None:
        state.chosen[slot] = asset
        state.outcome.assignments[slot] = SlotAssignment(
            slot=slot,
            texture_key=asset.key,
            texture_name=asset.filename or texture_basename(asset.key),
            tier=tier,
            score=score,
        )
        logger.debug(
            "Applied %s texture %s to '%s' by %s (score %.2f).",
            slot.value,
            asset.key,
            state.outcome.material_name,
            tier.value,
            score,
        )

    def _assign(
        self, target: MaterialTarget, slot: MapSlot, asset: TextureAsset
    ) -> bool:
        """Set a slot and run its side effects.

        Returns False only when the target refused the slot itself. Once the
        slot is set it counts as applied, and a failing side effect is logged.
        """
        try:
            target.assign_slot(slot, asset, srgb=self.settings.is_color_slot(slot))
        except TexLinkError as exc:
            logger.warning(
                "Failed to apply %s texture %s to '%s': %s",
                slot.value,
                asset.key,
                target.name,
                exc,
            )
            return False

        try:
            if slot is MapSlot.BASE_COLOR:
                target.reset_tint()
                if not target.has_vertex_color_attribute():
                    target.disable_vertex_colors()
            elif slot is MapSlot.AMBIENT_OCCLUSION:
                if target.has_uv_channel(0) and not target.has_uv_channel(1):
                    target.duplicate_primary_uv()
        except TexLinkError as exc:
            logger.warning(
                "Applied %s texture %s to '%s' but could not update the mesh: %s",
                slot.value,
                asset.key,
                target.name,
                exc,
            )
        return True

    def _affix_rank(self, prefix: str, name: str) -> Optional[int]:
        if not prefix or not name:
            return None
        if prefix == name:
            return _AFFIX_EXACT
        if min(len(prefix), len(name)) < self.settings.min_affix_length:
            return None
        if prefix.endswith(name) or name.endswith(prefix):
            return _AFFIX_ENDS
        if prefix.startswith(name) or name.startswith(prefix):
            return _AFFIX_STARTS
        return None

    def _best_affix(
        self, normalized: str, slot: MapSlot, max_rank: int = _AFFIX_STARTS
    ) -> Optional[Tuple[TextureAsset, str]]:
        best: Optional[Tuple[TextureAsset, str]] = None
        best_rank: Optional[int] = None
        for asset, prefix in self.index.candidates(slot):
            rank = self._affix_rank(prefix, normalized)
            if rank is None or rank > max_rank:
                continue
            if best_rank is None or rank < best_rank:
                best, best_rank = (asset, prefix), rank
        return best

    def _strict_prefix_match(self, normalized: str) -> Optional[TextureAsset]:
        match = self._best_affix(normalized, MapSlot.BASE_COLOR)
        if match is None:
            logger.debug("No strict prefix base color for '%s'.", normalized)
            return None
        return match[0]

    def _fuzzy_match(
        self, normalized: str, slot: MapSlot
    ) -> Optional[Tuple[TextureAsset, float]]:
        # Starts-with containment is left to the similarity threshold below.
        affix = self._best_affix(normalized, slot, max_rank=_AFFIX_ENDS)
        if affix is not None:
            asset, prefix = affix
            return asset, similarity(prefix, normalized)

        threshold = self.settings.threshold_for(slot)
        best: Optional[TextureAsset] = None
        best_score = 0.0
        for asset, prefix in self.index.candidates(slot):
            score = similarity(prefix, normalized)
            if score < threshold:
                if score > 0.5:
                    logger.debug(
                        "Rejected %s candidate '%s' for '%s' (%.2f < %.2f).",
                        slot.value,
                        prefix,
                        normalized,
                        score,
                        threshold,
                    )
                continue
            if best is None or score > best_score:
                best, best_score = asset, score
        if best is None:
            return None
        return best, best_score


def resolve_materials(
    targets: Iterable[MaterialTarget],
    assets: Iterable[TextureAsset],
    settings: Optional[ResolverSettings] = None,
) -> List[ResolutionOutcome]:
    """Build an index over assets and resolve every target against it."""
    return TextureResolver(assets, settings).resolve(targets)


def format_mapping_summary(
    outcomes: Iterable[ResolutionOutcome],
    index: Optional[MaterialTextureIndex] = None,
) -> str:
    """Render a human readable ``material -> {slot: texture}`` summary.

    Args:
        outcomes: Resolution outcomes of one run.
        index: Optional index whose unclassified textures are listed too.

    Returns:
        str: Multi-line summary.
    """
    lines = ["=== Texture Mapping Summary ==="]
    for outcome in outcomes:
        label = outcome.material_name or "<unnamed>"
        if not outcome.assignments:
            lines.append(f"{label} -> {{ }}")
            continue
        entries = ", ".join(
            f"{slot.value}:{assignment.texture_name} ({assignment.tier.value})"
            for slot, assignment in outcome.assignments.items()
        )
        lines.append(f"{label} -> {{ {entries} }}")
    if index is not None and index.unparsed:
        names = ", ".join(asset.filename or asset.key for asset in index.unparsed)
        lines.append(f"Unclassified textures: {names}")
    if index is not None and index.invalid:
        names = ", ".join(asset.key for asset in index.invalid)
        lines.append(f"Textures without image data: {names}")
    lines.append("=== End Mapping Summary ===")
    return "\n".join(lines)


def outcomes_to_report(outcomes: Iterable[ResolutionOutcome]) -> List[Dict[str, Any]]:
    """Convert outcomes into a JSON serializable report, one entry per material."""
    report: List[Dict[str, Any]] = []
    for outcome in outcomes:
        report.append({
            "material": outcome.material_name,
            "matched_by": outcome.matched_by.value,
            "slots": {
                slot.value: {
                    "texture": assignment.texture_key,
                    "tier": assignment.tier.value,
                    "score": round(assignment.score, 4),
                }
                for slot, assignment in outcome.assignments.items()
            },
        })
    return report
