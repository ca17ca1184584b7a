"""Jinja2 environment for the text reports produced by nodes and adapters."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=select_autoescape(enabled_extensions=()),
)


def render(template_name: str, **context) -> str:
    return _env.get_template(template_name).render(**context)
