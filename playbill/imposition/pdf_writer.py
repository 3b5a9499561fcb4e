from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Sequence, cast

from pypdf import PdfReader, PdfWriter, Transformation
from pypdf.generic import DecodedStreamObject

from playbill.constants import PAPER_SIZES
from playbill.imposition.core import BLANK_PAGE, BookletPage, BookletSpread, PageToken

ScalingMode = Literal["proportional", "stretch", "original"]
_SCALING_MODES: tuple[ScalingMode, ...] = ("proportional", "stretch", "original")
PositioningMode = Literal["centered", "binding_aligned"]
_POSITIONING_MODES: tuple[PositioningMode, ...] = ("centered", "binding_aligned")


@dataclass(frozen=True)
class PrintMarksOptions:
    crop: bool = False
    fold: bool = False

    @property
    def enabled(self) -> bool:
        return self.crop or self.fold


@dataclass(frozen=True)
class GeneratedArtifact:
    path: Path
    page_count: int
    placed_pages: list[tuple[int, int]]


def _clamp(value: float, *, lower: float, upper: float) -> float:
    return max(lower, min(value, upper))


def _build_print_mark_commands(
    *,
    output_width: float,
    output_height: float,
    options: PrintMarksOptions,
) -> bytes:
    if not options.enabled:
        return b""

    max_x = max(output_width, 0.0)
    max_y = max(output_height, 0.0)
    margin = max(min(min(max_x, max_y) * 0.02, 18.0), 4.0)
    mark_length = max(min(min(max_x, max_y) * 0.03, 14.0), 4.0)
    line_width = max(min(min(max_x, max_y) * 0.0018, 1.2), 0.3)
    commands: list[str] = ["q", "% playbill-print-marks", "0 0 0 RG", f"{line_width:.3f} w"]

    def line(x1: float, y1: float, x2: float, y2: float) -> None:
        commands.append(
            f"{_clamp(x1, lower=0.0, upper=max_x):.3f} {_clamp(y1, lower=0.0, upper=max_y):.3f} m "
            f"{_clamp(x2, lower=0.0, upper=max_x):.3f} {_clamp(y2, lower=0.0, upper=max_y):.3f} l S"
        )

    if options.crop:
        for corner_x, step_x in ((margin, mark_length), (max_x - margin, -mark_length)):
            for corner_y, step_y in ((margin, mark_length), (max_y - margin, -mark_length)):
                line(corner_x, corner_y, corner_x + step_x, corner_y)
                line(corner_x, corner_y, corner_x, corner_y + step_y)

    if options.fold:
        # Saddle-stitch fold runs down the middle of every sheet side.
        center_x = max_x / 2.0
        line(center_x, margin, center_x, margin + mark_length)
        line(center_x, max_y - margin, center_x, max_y - margin - mark_length)

    commands.append("Q")
    return ("\n".join(commands) + "\n").encode("ascii")


def _append_page_commands(imposed_page, commands: bytes) -> None:
    if not commands:
        return

    stream = DecodedStreamObject()
    stream.set_data((imposed_page._get_contents_as_bytes() or b"") + commands)
    imposed_page.replace_contents(stream)


def resolve_paper_dimensions(paper_size: str) -> tuple[float, float]:
    try:
        return PAPER_SIZES[paper_size]
    except KeyError as exc:
        valid = ", ".join(sorted(PAPER_SIZES))
        raise ValueError(f"unsupported paper size '{paper_size}', expected one of: {valid}") from exc


def resolve_scaling_mode(value: str) -> ScalingMode:
    normalized = value.strip().lower()
    if normalized in _SCALING_MODES:
        return cast(ScalingMode, normalized)

    valid = ", ".join(_SCALING_MODES)
    raise ValueError(f"unsupported scaling mode '{value}', expected one of: {valid}")


def resolve_positioning_mode(value: str) -> PositioningMode:
    normalized = value.strip().lower().replace("-", "_")
    if normalized in _POSITIONING_MODES:
        return cast(PositioningMode, normalized)

    valid = ", ".join(_POSITIONING_MODES)
    raise ValueError(f"unsupported positioning mode '{value}', expected one of: {valid}")


def _filename_slug(source_name: str) -> str:
    stem = Path(source_name).stem.strip()
    slug = re.sub(r"[^A-Za-z0-9]+", "_", stem).strip("_").lower()
    return slug or "program"


def deterministic_booklet_filename(source_name: str) -> str:
    return f"{_filename_slug(source_name)}_booklet.pdf"


def deterministic_reading_order_filename(source_name: str) -> str:
    return f"{_filename_slug(source_name)}_reading_order.pdf"


def _resolve_scales(
    *,
    source_width: float,
    source_height: float,
    slot_width: float,
    slot_height: float,
    scaling_mode: ScalingMode,
) -> tuple[float, float]:
    if scaling_mode == "proportional":
        scale = min(slot_width / source_width, slot_height / source_height)
        return scale, scale
    if scaling_mode == "stretch":
        return slot_width / source_width, slot_height / source_height
    if scaling_mode == "original":
        return 1.0, 1.0

    valid = ", ".join(_SCALING_MODES)
    raise ValueError(f"unsupported scaling mode '{scaling_mode}', expected one of: {valid}")


def _slot_transform(
    source_page,
    slot_index: int,
    output_width: float,
    output_height: float,
    scaling_mode: ScalingMode = "proportional",
    positioning_mode: PositioningMode = "centered",
) -> Transformation:
    source_width = float(source_page.mediabox.width)
    source_height = float(source_page.mediabox.height)

    slot_width = output_width / 2.0
    slot_height = output_height

    scale_x, scale_y = _resolve_scales(
        source_width=source_width,
        source_height=source_height,
        slot_width=slot_width,
        slot_height=slot_height,
        scaling_mode=scaling_mode,
    )
    rendered_width = source_width * scale_x
    rendered_height = source_height * scale_y

    if positioning_mode == "centered":
        local_x_offset = (slot_width - rendered_width) / 2.0
    elif positioning_mode == "binding_aligned":
        # Left pages hug the fold from the left, right pages from the right.
        local_x_offset = slot_width - rendered_width if slot_index == 0 else 0.0
    else:
        raise ValueError(f"unsupported positioning mode '{positioning_mode}'")

    x_offset = local_x_offset + (slot_width if slot_index == 1 else 0.0)
    y_offset = (slot_height - rendered_height) / 2.0
    return Transformation().scale(scale_x, scale_y).translate(x_offset, y_offset)


def _place_page(
    imposed_page,
    reader: PdfReader,
    page: BookletPage[PageToken],
    slot_index: int,
    output_width: float,
    output_height: float,
    blank_token: str,
    scaling_mode: ScalingMode = "proportional",
    positioning_mode: PositioningMode = "centered",
) -> None:
    token = page.content
    if token == blank_token:
        return

    if not isinstance(token, int):
        raise ValueError(f"expected int page token or blank token, got {token!r}")

    source_page = reader.pages[token]
    transform = _slot_transform(
        source_page,
        slot_index,
        output_width,
        output_height,
        scaling_mode=scaling_mode,
        positioning_mode=positioning_mode,
    )
    imposed_page.merge_transformed_page(source_page, transform)


def write_booklet_pdf(
    reader: PdfReader,
    spreads: Sequence[BookletSpread[PageToken]],
    output_path: Path,
    paper_size: str,
    scaling_mode: ScalingMode = "proportional",
    positioning_mode: PositioningMode = "centered",
    blank_token: str = BLANK_PAGE,
    print_marks: PrintMarksOptions | None = None,
) -> GeneratedArtifact:
    """Write one output page per spread, left and right halves side by side.

    Pages are emitted in spread order so a duplex printer flipping on the
    short edge reproduces each sheet front and back.
    """
    if not spreads:
        raise ValueError("cannot write a booklet without spreads")

    output_width, output_height = resolve_paper_dimensions(paper_size)
    resolved_scaling_mode = resolve_scaling_mode(scaling_mode)
    resolved_positioning_mode = resolve_positioning_mode(positioning_mode)
    mark_commands = _build_print_mark_commands(
        output_width=output_width,
        output_height=output_height,
        options=print_marks or PrintMarksOptions(),
    )

    writer = PdfWriter()
    placed_pages: list[tuple[int, int]] = []

    for spread in spreads:
        imposed_page = writer.add_blank_page(width=output_width, height=output_height)
        for slot_index, page in enumerate((spread.left, spread.right)):
            _place_page(
                imposed_page,
                reader=reader,
                page=page,
                slot_index=slot_index,
                output_width=output_width,
                output_height=output_height,
                blank_token=blank_token,
                scaling_mode=resolved_scaling_mode,
                positioning_mode=resolved_positioning_mode,
            )
        _append_page_commands(imposed_page, mark_commands)
        placed_pages.append((spread.left.page_number, spread.right.page_number))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("wb") as handle:
        writer.write(handle)

    return GeneratedArtifact(path=output_path, page_count=len(writer.pages), placed_pages=placed_pages)


def write_reading_order_pdf(
    reader: PdfReader,
    padded_pages: Sequence[PageToken],
    output_path: Path,
    blank_token: str = BLANK_PAGE,
) -> GeneratedArtifact:
    if not reader.pages:
        raise ValueError("cannot write a reading order preview for an empty document")

    first_page = reader.pages[0]
    blank_width = float(first_page.mediabox.width)
    blank_height = float(first_page.mediabox.height)

    writer = PdfWriter()
    for token in padded_pages:
        if token == blank_token:
            writer.add_blank_page(width=blank_width, height=blank_height)
        elif isinstance(token, int):
            writer.add_page(reader.pages[token])
        else:
            raise ValueError(f"expected int page token or blank token, got {token!r}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("wb") as handle:
        writer.write(handle)

    return GeneratedArtifact(path=output_path, page_count=len(writer.pages), placed_pages=[])
