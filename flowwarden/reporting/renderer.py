"""Text and JSON rendering for command reports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..files import write_text_atomic
from ..logging import get_logger

TEXT = "text"
JSON = "json"
FORMATS = (TEXT, JSON)


class ReportRenderer:
    """Renders report objects through the packaged Jinja templates.

    ``templates_dir`` is searched before the packaged templates so a project
    can override any of them by file name.
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        self._env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        self._env.filters["plural"] = _plural
        self.logger = get_logger("reporting")

    def render(self, template_name: str, **context: Any) -> str:
        template = self._env.get_template(template_name)
        return template.render(**context)

    def emit(
        self,
        template_name: str,
        payload: Mapping[str, Any],
        *,
        fmt: str = TEXT,
        output: Path | None = None,
        **context: Any,
    ) -> str:
        """Render as text or JSON, optionally also writing the result to ``output``."""
        if fmt == JSON:
            text = render_json(payload)
        else:
            text = self.render(template_name, **context)
        if output is not None:
            write_text_atomic(output, text if text.endswith("\n") else text + "\n")
            self.logger.info("Report written to %s", output)
        return text


def render_json(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _plural(count: int, singular: str, plural: str | None = None) -> str:
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


__all__ = ["FORMATS", "JSON", "TEXT", "ReportRenderer", "render_json"]
