"""Kida environment setup and rendering.

The environment is created once during ``App._freeze()`` from the app
config and the template globals collected from middleware. Views share
a layout through ``{% extends "layouts/app.html" %}``.
"""

from collections.abc import Mapping
from typing import Any

from kida import Environment, FileSystemLoader
from kida.environment.exceptions import TemplateNotFoundError

from zenith.config import AppConfig
from zenith.errors import ConfigurationError
from zenith.templating.returns import Template


class TemplateNotFound(ConfigurationError):  # noqa: N818
    """A handler returned a ``Template`` whose file does not exist."""


def create_environment(config: AppConfig, globals_: Mapping[str, Any]) -> Environment:
    """Create a kida Environment rooted at ``config.template_dir``."""
    env = Environment(
        loader=FileSystemLoader(str(config.template_dir)),
        autoescape=config.autoescape,
        auto_reload=config.debug,
    )
    for name, value in globals_.items():
        env.add_global(name, value)
    return env


def render_template(env: Environment, tpl: Template) -> str:
    """Render a full template to string."""
    try:
        template = env.get_template(tpl.name)
    except TemplateNotFoundError as exc:
        msg = f"Template not found: {tpl.name}"
        raise TemplateNotFound(msg) from exc
    return template.render(tpl.context)
