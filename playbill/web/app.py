from __future__ import annotations

import io
import logging
import re
import shutil
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Literal
from uuid import uuid4

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse, HTMLResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field, field_validator
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from playbill.constants import (
    DEFAULT_ARTIFACT_DIR,
    DEFAULT_ARTIFACT_RETENTION_SECONDS,
    PAPER_SIZES,
)
from playbill.imposition.core import (
    BookletSpread,
    blank_filler,
    build_booklet_spreads,
    pad_to_multiple_of_four,
    spread_page_numbers,
)
from playbill.imposition.pdf_writer import (
    _POSITIONING_MODES,
    _SCALING_MODES,
    PrintMarksOptions,
    deterministic_booklet_filename,
    deterministic_reading_order_filename,
    write_booklet_pdf,
    write_reading_order_pdf,
)
from playbill.program.models import Person, ProgramContent, ProgramPage
from playbill.program.roster import merge_people, parse_people_lines, parse_roster_lines, split_teams
from playbill.program.schedule import parse_performance_schedule, resolve_show_dates
from playbill.program.sequencer import (
    ProgramBooklet,
    generate_auto_billing,
    has_rich_text_content,
    is_http_url,
    paginate_program,
    parse_custom_pages,
    parse_layout_order,
    parse_production_photos,
)

_REQUEST_ID_PATTERN = re.compile(r"^[a-f0-9]{32}$")
_EXPIRED_ARTIFACT_MESSAGE = "This download link has expired after cleanup. Regenerate the booklet to create a new link."
_LOGGER = logging.getLogger("playbill.web")


@dataclass(frozen=True)
class ImpositionOptions:
    paper_size: str
    scaling_mode: str
    positioning_mode: str
    print_marks: PrintMarksOptions


class PersonPayload(BaseModel):
    full_name: str = Field(min_length=1)
    role_title: str = Field(min_length=1)
    team_type: Literal["cast", "production"]
    bio: str = ""
    headshot_url: str = ""
    email: str = ""


class PerformancePayload(BaseModel):
    date: str = ""
    time: str = ""


class ProgramPayload(BaseModel):
    title: str = Field(min_length=1)
    theatre_name: str = ""
    show_dates: str = ""
    show_dates_override: str = ""
    performance_schedule: list[PerformancePayload] = Field(default_factory=list)
    poster_image_url: str = ""
    director_notes: str = ""
    dramaturgical_note: str = ""
    billing_page: str = ""
    acts_songs: str = ""
    department_info: str = ""
    actf_ad_image_url: str = ""
    acknowledgements: str = ""
    season_calendar: str = ""
    production_photo_urls: str = ""
    custom_pages: str = ""
    layout_order: str = ""
    roster_lines: str = ""
    cast_lines: str = ""
    production_team_lines: str = ""
    people: list[PersonPayload] = Field(default_factory=list)

    @field_validator("poster_image_url", "actf_ad_image_url")
    @classmethod
    def _http_url_or_blank(cls, value: str) -> str:
        value = value.strip()
        if value and not is_http_url(value):
            raise ValueError("must be an http(s) URL")
        return value


def _log_event(level: int, event_name: str, **event_fields: Any) -> None:
    _LOGGER.log(
        level,
        event_name,
        extra={"event_name": event_name, "event_fields": event_fields},
    )


def _cleanup_stale_artifacts(
    artifact_dir: Path,
    *,
    retention_seconds: int,
    now: float | None = None,
) -> int:
    if retention_seconds < 0:
        return 0

    cutoff = (time.time() if now is None else now) - retention_seconds
    removed = 0
    for child in artifact_dir.iterdir():
        try:
            is_stale = child.stat().st_mtime < cutoff
        except FileNotFoundError:
            continue

        if not is_stale:
            continue

        if child.is_dir():
            shutil.rmtree(child, ignore_errors=True)
        else:
            child.unlink(missing_ok=True)
        removed += 1

    return removed


def _validated_filename(filename: str) -> str:
    if "\\" in filename:
        raise HTTPException(status_code=400, detail="Invalid filename")

    safe_name = Path(filename).name
    if safe_name != filename or safe_name in {"", ".", ".."}:
        raise HTTPException(status_code=400, detail="Invalid filename")
    return safe_name


def _program_from_payload(payload: ProgramPayload) -> tuple[ProgramContent, list[Person], list[Person]]:
    people = merge_people(
        [
            *parse_roster_lines(payload.roster_lines),
            *parse_people_lines(payload.cast_lines, "cast"),
            *parse_people_lines(payload.production_team_lines, "production"),
            *(Person(**person.model_dump()) for person in payload.people),
        ]
    )
    cast_people, production_people = split_teams(people)
    schedule = parse_performance_schedule(entry.model_dump() for entry in payload.performance_schedule)

    billing = payload.billing_page if has_rich_text_content(payload.billing_page) else generate_auto_billing(people)
    program = ProgramContent(
        title=payload.title,
        theatre_name=payload.theatre_name,
        show_dates=resolve_show_dates(payload.show_dates_override, payload.show_dates, schedule),
        poster_image_url=payload.poster_image_url,
        director_notes=payload.director_notes,
        dramaturgical_note=payload.dramaturgical_note,
        billing_page=billing,
        acts_songs=payload.acts_songs,
        department_info=payload.department_info,
        actf_ad_image_url=payload.actf_ad_image_url,
        acknowledgements=payload.acknowledgements,
        season_calendar=payload.season_calendar,
        production_photo_urls=parse_production_photos(payload.production_photo_urls),
        custom_pages=parse_custom_pages(payload.custom_pages),
        layout_order=parse_layout_order(payload.layout_order),
    )
    return program, cast_people, production_people


def _page_json(page: ProgramPage) -> dict[str, Any]:
    return asdict(page)


def _spread_json(spread: BookletSpread[Any], content: Callable[[Any], Any]) -> dict[str, Any]:
    return {
        "sheet": spread.sheet,
        "side": spread.side,
        "left": {"page_number": spread.left.page_number, "content": content(spread.left.content)},
        "right": {"page_number": spread.right.page_number, "content": content(spread.right.content)},
    }


def _booklet_json(booklet: ProgramBooklet) -> dict[str, Any]:
    return {
        "sheets": booklet.sheets,
        "page_sequence": [_page_json(page) for page in booklet.page_sequence],
        "padded_pages": [_page_json(page) for page in booklet.padded_pages],
        "spreads": [_spread_json(spread, _page_json) for spread in booklet.spreads],
        "page_numbers": spread_page_numbers(booklet.spreads),
    }


def _parse_form_input(
    *,
    paper_size: str,
    scaling_mode: str,
    positioning_mode: str,
    crop_marks: bool = False,
    fold_marks: bool = False,
) -> tuple[ImpositionOptions, dict[str, Any], str | None]:
    options = ImpositionOptions(
        paper_size=paper_size.strip(),
        scaling_mode=scaling_mode.strip().lower(),
        positioning_mode=positioning_mode.strip().lower().replace("-", "_"),
        print_marks=PrintMarksOptions(crop=crop_marks, fold=fold_marks),
    )
    form_values: dict[str, Any] = {
        "paper_size": options.paper_size,
        "scaling_mode": options.scaling_mode,
        "positioning_mode": options.positioning_mode,
        "crop_marks": crop_marks,
        "fold_marks": fold_marks,
    }

    if options.paper_size not in PAPER_SIZES:
        valid_sizes = ", ".join(sorted(PAPER_SIZES))
        return options, form_values, f"Invalid paper size. Choose one of: {valid_sizes}."
    if options.scaling_mode not in _SCALING_MODES:
        return options, form_values, "Invalid scaling mode. Choose proportional, stretch, or original."
    if options.positioning_mode not in _POSITIONING_MODES:
        return options, form_values, "Invalid positioning mode. Choose centered or binding_aligned."

    return options, form_values, None


def _validate_upload_metadata(file: UploadFile | None) -> tuple[str | None, str | None]:
    if file is None or not file.filename:
        return None, "Upload a rendered program PDF to continue."

    source_name = Path(file.filename).name
    if Path(source_name).suffix.lower() != ".pdf":
        return None, "Only .pdf uploads are supported."

    return source_name, None


def _impose_payload(
    *,
    payload: bytes,
    source_name: str,
    options: ImpositionOptions,
    artifact_dir: Path,
    artifact_retention_seconds: int,
    job_id: str | None = None,
) -> tuple[dict[str, Any] | None, str | None]:
    if not payload:
        _log_event(logging.WARNING, "impose.job.empty_upload", job_id=job_id, source_name=source_name)
        return None, "The uploaded file is empty."

    try:
        reader = PdfReader(io.BytesIO(payload))
    except PdfReadError:
        _log_event(
            logging.WARNING,
            "impose.job.invalid_pdf",
            job_id=job_id,
            source_name=source_name,
            payload_bytes=len(payload),
        )
        return None, "The upload could not be parsed as a PDF. Verify the file is a valid, non-corrupted PDF and retry."

    if reader.is_encrypted:
        _log_event(logging.WARNING, "impose.job.encrypted_pdf", job_id=job_id, source_name=source_name)
        return None, "Encrypted PDFs are not supported. Remove encryption and retry."

    source_pages = list(range(len(reader.pages)))
    if not source_pages:
        _log_event(logging.WARNING, "impose.job.no_pages", job_id=job_id, source_name=source_name)
        return None, "The uploaded PDF has no pages."

    padded_pages = pad_to_multiple_of_four(source_pages, blank_filler)
    spreads = build_booklet_spreads(padded_pages)

    removed = _cleanup_stale_artifacts(
        artifact_dir,
        retention_seconds=artifact_retention_seconds,
    )

    request_id = uuid4().hex
    request_artifact_dir = artifact_dir / request_id
    booklet_name = deterministic_booklet_filename(source_name)
    reading_order_name = deterministic_reading_order_filename(source_name)

    try:
        booklet = write_booklet_pdf(
            reader,
            spreads=spreads,
            output_path=request_artifact_dir / booklet_name,
            paper_size=options.paper_size,
            scaling_mode=options.scaling_mode,
            positioning_mode=options.positioning_mode,
            print_marks=options.print_marks,
        )
        reading_order = write_reading_order_pdf(
            reader,
            padded_pages=padded_pages,
            output_path=request_artifact_dir / reading_order_name,
        )
    except ValueError as exc:
        _log_event(
            logging.WARNING,
            "impose.job.unsupported_options",
            job_id=job_id,
            source_name=source_name,
            error=str(exc),
        )
        return None, f"Unsupported options for imposition: {exc}."
    except Exception:
        _LOGGER.exception(
            "impose.job.unexpected_failure",
            extra={
                "event_name": "impose.job.unexpected_failure",
                "event_fields": {"job_id": job_id, "source_name": source_name},
            },
        )
        return None, "Imposition failed unexpectedly. Retry and check server logs for the associated job."

    _log_event(
        logging.INFO,
        "impose.job.completed",
        job_id=job_id,
        request_id=request_id,
        source_name=source_name,
        source_pages=len(source_pages),
        filler_pages=len(padded_pages) - len(source_pages),
        sheets=len(spreads) // 2,
        output_pages=booklet.page_count,
        stale_artifacts_removed=removed,
    )

    return {
        "status": "success",
        "message": "Booklet imposition complete.",
        "source_pages": len(source_pages),
        "filler_pages": len(padded_pages) - len(source_pages),
        "sheets": len(spreads) // 2,
        "download_url": f"/download/{request_id}/{booklet_name}",
        "output_filename": booklet_name,
        "output_pages": booklet.page_count,
        "reading_order_url": f"/download/{request_id}/{reading_order_name}",
        "reading_order_filename": reading_order_name,
        "reading_order_pages": reading_order.page_count,
        "spreads": [
            {"sheet": spread.sheet, "side": spread.side, "left": left, "right": right}
            for spread, (left, right) in zip(spreads, booklet.placed_pages)
        ],
    }, None


def _resolve_request_artifact_path(artifact_dir: Path, request_id: str, filename: str) -> Path:
    if _REQUEST_ID_PATTERN.fullmatch(request_id) is None:
        _log_event(logging.WARNING, "download.request.invalid_request_id", request_id=request_id, filename=filename)
        raise HTTPException(status_code=400, detail="Invalid request id")

    safe_name = _validated_filename(filename)
    request_artifact_dir = artifact_dir / request_id
    if not request_artifact_dir.is_dir():
        _log_event(logging.WARNING, "download.request.expired", request_id=request_id, filename=safe_name)
        raise HTTPException(status_code=410, detail=_EXPIRED_ARTIFACT_MESSAGE)

    file_path = request_artifact_dir / safe_name
    if not file_path.is_file():
        _log_event(logging.WARNING, "download.request.missing_file", request_id=request_id, filename=safe_name)
        raise HTTPException(status_code=404, detail="File not found")

    return file_path


def create_app(
    artifact_dir: Path | None = None,
    artifact_retention_seconds: int = DEFAULT_ARTIFACT_RETENTION_SECONDS,
) -> FastAPI:
    app = FastAPI(title="Playbill", version="0.1.0")

    base_dir = Path(__file__).resolve().parent
    templates = Jinja2Templates(directory=str(base_dir / "templates"))

    app.mount("/static", StaticFiles(directory=str(base_dir / "static")), name="static")

    target_artifact_dir = artifact_dir or (Path.cwd() / DEFAULT_ARTIFACT_DIR)
    target_artifact_dir.mkdir(parents=True, exist_ok=True)
    app.state.artifact_dir = target_artifact_dir
    app.state.artifact_retention_seconds = artifact_retention_seconds
    app.state.templates = templates

    def render_index(
        request: Request,
        *,
        result: dict[str, Any] | None = None,
        form_values: dict[str, Any] | None = None,
        status_code: int = 200,
    ) -> HTMLResponse:
        defaults = {
            "paper_size": "Letter",
            "scaling_mode": "proportional",
            "positioning_mode": "centered",
            "crop_marks": False,
            "fold_marks": False,
        }
        if form_values:
            defaults.update(form_values)

        return templates.TemplateResponse(
            request=request,
            name="index.html",
            context={
                "result": result,
                "paper_sizes": sorted(PAPER_SIZES),
                "scaling_modes": list(_SCALING_MODES),
                "positioning_modes": list(_POSITIONING_MODES),
                "form": defaults,
            },
            status_code=status_code,
        )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    def index(request: Request) -> HTMLResponse:
        return render_index(request)

    @app.post("/programs/booklet")
    def program_booklet(payload: ProgramPayload) -> dict[str, Any]:
        try:
            program, cast_people, production_people = _program_from_payload(payload)
        except ValueError as exc:
            _log_event(logging.WARNING, "program.request.invalid_content", title=payload.title, error=str(exc))
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        booklet = paginate_program(program, cast_people, production_people)
        _log_event(
            logging.INFO,
            "program.request.paginated",
            title=payload.title,
            content_pages=len(booklet.page_sequence),
            padded_pages=len(booklet.padded_pages),
            sheets=booklet.sheets,
        )
        return _booklet_json(booklet)

    @app.post("/impose", response_class=HTMLResponse)
    async def impose(
        request: Request,
        file: UploadFile | None = File(default=None),
        paper_size: str = Form("Letter"),
        scaling_mode: str = Form("proportional"),
        positioning_mode: str = Form("centered"),
        crop_marks: bool = Form(False),
        fold_marks: bool = Form(False),
    ) -> HTMLResponse:
        job_id = uuid4().hex
        _log_event(
            logging.INFO,
            "impose.request.received",
            job_id=job_id,
            paper_size=paper_size,
            scaling_mode=scaling_mode,
            positioning_mode=positioning_mode,
            has_upload=file is not None and bool(file.filename),
        )

        options, form_values, form_error = _parse_form_input(
            paper_size=paper_size,
            scaling_mode=scaling_mode,
            positioning_mode=positioning_mode,
            crop_marks=crop_marks,
            fold_marks=fold_marks,
        )
        if form_error is not None:
            _log_event(logging.WARNING, "impose.request.form_validation_failed", job_id=job_id, error=form_error)
            return render_index(
                request,
                result={"status": "error", "message": form_error},
                form_values=form_values,
                status_code=400,
            )

        source_name, upload_error = _validate_upload_metadata(file)
        if upload_error is not None or file is None or source_name is None:
            _log_event(logging.WARNING, "impose.request.upload_validation_failed", job_id=job_id, error=upload_error)
            return render_index(
                request,
                result={"status": "error", "message": upload_error},
                form_values=form_values,
                status_code=400,
            )

        payload = await file.read()
        result, impose_error = _impose_payload(
            payload=payload,
            source_name=source_name,
            options=options,
            artifact_dir=app.state.artifact_dir,
            artifact_retention_seconds=app.state.artifact_retention_seconds,
            job_id=job_id,
        )
        if impose_error is not None or result is None:
            _log_event(logging.WARNING, "impose.request.failed", job_id=job_id, source_name=source_name, error=impose_error)
            return render_index(
                request,
                result={"status": "error", "message": impose_error or "Imposition failed."},
                form_values=form_values,
                status_code=400,
            )

        _log_event(
            logging.INFO,
            "impose.request.succeeded",
            job_id=job_id,
            source_name=source_name,
            output_filename=result["output_filename"],
            output_pages=result["output_pages"],
            download_url=result["download_url"],
        )
        return render_index(request, result=result, form_values=form_values)

    @app.get("/download/{request_id}/{filename:path}")
    def download_request_artifact(request: Request, request_id: str, filename: str) -> Response:
        try:
            file_path = _resolve_request_artifact_path(app.state.artifact_dir, request_id, filename)
        except HTTPException as exc:
            if exc.status_code == 410 and "text/html" in request.headers.get("accept", ""):
                return render_index(
                    request,
                    result={"status": "error", "message": _EXPIRED_ARTIFACT_MESSAGE},
                    status_code=410,
                )
            raise

        return FileResponse(path=file_path, media_type="application/pdf", filename=file_path.name)

    return app


app = create_app()
