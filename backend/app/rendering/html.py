# backend/app/rendering/html.py
from pathlib import Path
from typing import Any, Dict

from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

# Jinja2Templates autoescape açık gelir
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render_proposal_html(ctx: Dict[str, Any]) -> str:
    return templates.get_template("proposal.html").render(**ctx)
