"""
Renderers that turn one content block into an HTML fragment.

Every supported block type has an explicit entry in a
``BlockRendererRegistry``. A type without an entry cannot be rendered and is
reported through ``UnsupportedBlockTypeError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound, select_autoescape
from markupsafe import escape

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

# Blocks whose message already carries HTML in ``formatted_body``.
PREFORMATTED_BLOCK_TYPES = ("text", "ul", "ol")
# Blocks whose message points at uploaded media.
MEDIA_BLOCK_TYPES = ("image", "audio", "video")
TEMPLATE_BLOCK_TYPES = ("image", "audio", "video", "code")

BlockRenderer = Callable[[Dict[str, Any]], str]


class BlockRenderingError(Exception):
    """Raised when a content block cannot be turned into HTML."""


class UnsupportedBlockTypeError(BlockRenderingError):
    """Raised when no renderer is registered for a block type."""

    def __init__(self, block_type: str):
        super().__init__(f"No renderer registered for block type '{block_type}'")
        self.block_type = block_type


def render_preformatted(context: Dict[str, Any]) -> str:
    """Return the message's own HTML, or the escaped plain body without one."""
    raw = context.get("raw_message_content") or {}
    formatted = raw.get("formatted_body")
    if formatted is not None:
        return formatted
    return str(escape(context.get("content") or ""))


def create_template_environment(template_dir: Path = TEMPLATE_DIR) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html"]),
    )


class BlockRendererRegistry:
    """Maps block types to renderer callables."""

    def __init__(self) -> None:
        self._renderers: Dict[str, BlockRenderer] = {}

    def register(self, block_type: str, renderer: BlockRenderer) -> None:
        self._renderers[block_type] = renderer

    def register_template(
        self,
        block_type: str,
        environment: Environment,
        template_name: Optional[str] = None,
    ) -> None:
        """Register a jinja2 template (``<block_type>.html`` by default)."""
        name = template_name or f"{block_type}.html"
        try:
            template = environment.get_template(name)
        except TemplateNotFound as exc:
            raise BlockRenderingError(f"Template '{name}' for block type '{block_type}' not found") from exc
        except TemplateError as exc:
            raise BlockRenderingError(f"Template '{name}' for block type '{block_type}' is invalid: {exc}") from exc

        def _render(context: Dict[str, Any]) -> str:
            return template.render(**context)

        self._renderers[block_type] = _render

    def supports(self, block_type: str) -> bool:
        return block_type in self._renderers

    @property
    def block_types(self) -> Iterable[str]:
        return sorted(self._renderers)

    def render(self, block_type: str, context: Dict[str, Any]) -> str:
        """
        Render ``context`` with the renderer registered for ``block_type``.

        Args:
            block_type: Type parsed from the content room name.
            context: ``content`` (body or media URL) and
                     ``raw_message_content`` (the message event content).

        Raises:
            UnsupportedBlockTypeError: If ``block_type`` has no renderer.
            BlockRenderingError: If the renderer itself fails.
        """
        renderer = self._renderers.get(block_type)
        if renderer is None:
            raise UnsupportedBlockTypeError(block_type)
        try:
            return renderer(context)
        except TemplateError as exc:
            raise BlockRenderingError(f"Rendering '{block_type}' block failed: {exc}") from exc

    @classmethod
    def default(cls, template_dir: Path = TEMPLATE_DIR) -> "BlockRendererRegistry":
        """Registry with the built-in block types."""
        registry = cls()
        for block_type in PREFORMATTED_BLOCK_TYPES:
            registry.register(block_type, render_preformatted)

        environment = create_template_environment(template_dir)
        for block_type in TEMPLATE_BLOCK_TYPES:
            registry.register_template(block_type, environment)

        logger.debug(f"Registered block renderers: {', '.join(registry.block_types)}")
        return registry
