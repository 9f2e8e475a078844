from .block_renderers import (
    MEDIA_BLOCK_TYPES,
    PREFORMATTED_BLOCK_TYPES,
    BlockRendererRegistry,
    BlockRenderingError,
    UnsupportedBlockTypeError,
)

__all__ = [
    "MEDIA_BLOCK_TYPES",
    "PREFORMATTED_BLOCK_TYPES",
    "BlockRendererRegistry",
    "BlockRenderingError",
    "UnsupportedBlockTypeError",
]
