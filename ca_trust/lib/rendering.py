"""Jinja2 rendering of installer artifacts (Windows script, Firefox guide)."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

TEMPLATE_DIR = Path(__file__).parent / "templates"


def powershell_quote(value: object) -> str:
    """Quote value as a PowerShell single-quoted literal (no $ expansion)."""
    return "'" + str(value).replace("'", "''") + "'"


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=select_autoescape(["html", "html.j2"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["ps_quote"] = powershell_quote
    return env


def render_template(name: str, **context: object) -> str:
    """Render a template from TEMPLATE_DIR.

    Args:
        name: Template file name, e.g. 'firefox_guide.html.j2'
        context: Template variables

    Returns:
        Rendered text
    """
    return _environment().get_template(name).render(**context)
