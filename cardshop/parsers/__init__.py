from cardshop.parsers.checklist_import import (
    LineError,
    ParsedCard,
    ParsedChecklist,
    parse_checklist_line,
    parse_checklist_text,
)

__all__ = [
    "LineError",
    "ParsedCard",
    "ParsedChecklist",
    "parse_checklist_line",
    "parse_checklist_text",
]
