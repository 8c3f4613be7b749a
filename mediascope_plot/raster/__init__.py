from .canvas import blit, draw_hline, draw_vline, new_canvas
from .draw_text import draw_text
from .renderer import RasterRenderer, arc_outline

__all__ = [
    "RasterRenderer",
    "arc_outline",
    "blit",
    "draw_hline",
    "draw_text",
    "draw_vline",
    "new_canvas",
]
