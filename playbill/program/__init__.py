from playbill.program.models import LAYOUT_TOKENS, CustomPage, Person, ProgramContent, ProgramPage
from playbill.program.roster import merge_people, parse_people_lines, parse_roster_lines, split_teams
from playbill.program.schedule import (
    PerformanceRecord,
    format_performance_label,
    parse_performance_schedule,
    resolve_show_dates,
)
from playbill.program.sequencer import (
    ProgramBooklet,
    build_program_pages,
    generate_auto_billing,
    has_rich_text_content,
    make_filler_page,
    paginate_program,
    parse_custom_pages,
    parse_layout_order,
    parse_production_photos,
)

__all__ = [
    "LAYOUT_TOKENS",
    "CustomPage",
    "PerformanceRecord",
    "Person",
    "ProgramBooklet",
    "ProgramContent",
    "ProgramPage",
    "build_program_pages",
    "format_performance_label",
    "generate_auto_billing",
    "has_rich_text_content",
    "make_filler_page",
    "merge_people",
    "paginate_program",
    "parse_custom_pages",
    "parse_layout_order",
    "parse_people_lines",
    "parse_performance_schedule",
    "parse_production_photos",
    "parse_roster_lines",
    "resolve_show_dates",
    "split_teams",
]
