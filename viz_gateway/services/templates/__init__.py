"""
Template rendering for dashboard payloads.

Public API::

    from viz_gateway.services.templates import template_renderer
"""

from viz_gateway.services.templates.renderer import TemplateRenderer, template_renderer

__all__ = ["TemplateRenderer", "template_renderer"]
