"""
Web Frontend.

Jinja2 templates for the server-rendered screens.
"""

from pathlib import Path

from fastapi.templating import Jinja2Templates

from notebookweb.backend.core.utils import format_note_date

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["note_date"] = format_note_date
