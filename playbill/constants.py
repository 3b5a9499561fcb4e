from __future__ import annotations

from typing import Final

PAPER_SIZES: Final[dict[str, tuple[float, float]]] = {
    "A3": (1190.551, 841.8898),
    "A4": (841.8898, 595.2756),
    "Legal": (1008.0, 612.0),
    "Letter": (792.0, 612.0),
    "Tabloid": (1224.0, 792.0),
}

DEFAULT_ARTIFACT_DIR: Final[str] = "generated"
DEFAULT_ARTIFACT_RETENTION_SECONDS: Final[int] = 24 * 60 * 60

FILLER_PAGE_TITLE: Final[str] = "Additional Information"
FILLER_PAGE_BODY: Final[str] = "Space reserved for additional production notes, photos, or sponsor content."
FALLBACK_PAGE_TITLE: Final[str] = "Program Content"
FALLBACK_PAGE_BODY: Final[str] = "No sections were provided yet. Add content and regenerate this playbill."
