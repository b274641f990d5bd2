"""
TemplateRenderer — Validates and expands user-supplied dashboard templates.

Single Responsibility: turn ``(template_body, parameters)`` pairs into the
concrete payloads published to the rendering service.  No I/O.

Strictness policy: a template that references a parameter the caller did
not supply is an error (``StrictUndefined``), never an empty string.
Templates come from API callers, so they run in Jinja's sandbox.

Field references use the dot form ``{{.title}}`` (or ``{{ .a.b }}`` for
nested values); :class:`DotFieldExtension` rewrites the leading dot away
before Jinja parses the source, so ``{{ title }}`` works as well.

Usage::

    from viz_gateway.services.templates import template_renderer

    payloads = template_renderer.render(
        ['{"title": "{{.title}}"}'],
        [{"title": "Sales"}],
    )
"""

from __future__ import annotations

import logging
import re
from typing import Any, List, Mapping, Optional, Sequence

from jinja2 import StrictUndefined, TemplateError
from jinja2.ext import Extension
from jinja2.sandbox import SandboxedEnvironment

from viz_gateway.core.errors import UserDataError

logger = logging.getLogger(__name__)

# "{{" (optionally "{{-") followed by a dot-field reference
_DOT_FIELD = re.compile(r"(\{\{-?\s*)\.(?=[A-Za-z_])")


class DotFieldExtension(Extension):
    """Accept ``{{.name}}`` field references as ``{{ name }}``."""

    def preprocess(self, source: str, name: Optional[str], filename: Optional[str] = None) -> str:
        return _DOT_FIELD.sub(r"\1", source)


class TemplateRenderer:
    """
    Renders a batch of templates, all-or-nothing.

    The first failing template aborts the batch with a
    :class:`UserDataError` naming its index.
    """

    def __init__(self) -> None:
        self._env = SandboxedEnvironment(
            undefined=StrictUndefined,
            extensions=[DotFieldExtension],
            autoescape=False,
            keep_trailing_newline=True,
        )

    def render(
        self,
        templates: Sequence[str],
        parameters: Sequence[Optional[Mapping[str, Any]]],
    ) -> List[str]:
        """
        Render every template with its own parameter set.

        Args:
            templates:   Template bodies, one per dashboard.
            parameters:  Parameter mappings, parallel to ``templates``.

        Returns:
            Rendered payloads in input order.

        Raises:
            UserDataError: length mismatch, syntax error, or a reference
                to a parameter that was not supplied.
        """
        if len(templates) != len(parameters):
            raise UserDataError(
                f"Got {len(templates)} templates but {len(parameters)} "
                f"parameter sets"
            )

        rendered: List[str] = []
        for index, (body, params) in enumerate(zip(templates, parameters)):
            rendered.append(self._render_one(index, body, params))

        logger.debug(f"[TemplateRenderer] Rendered {len(rendered)} template(s)")
        return rendered

    def _render_one(
        self,
        index: int,
        body: str,
        params: Optional[Mapping[str, Any]],
    ) -> str:
        if params is not None and not isinstance(params, Mapping):
            raise UserDataError(
                f"ErrorMsg: 'template parameters must be an object', "
                f"TemplateIndex: '{index}'",
                index=index,
            )

        try:
            template = self._env.from_string(body)
            return template.render(dict(params or {}))
        except (TemplateError, ArithmeticError, TypeError, ValueError) as exc:
            # Expression errors inside ``{{ }}`` surface as plain Python errors
            logger.info(
                f"[TemplateRenderer] Template {index} rejected: {exc}"
            )
            raise UserDataError(
                f"ErrorMsg: '{exc}', TemplateIndex: '{index}'",
                index=index,
            ) from exc


# ── Singleton ────────────────────────────────────────────────────
template_renderer = TemplateRenderer()
