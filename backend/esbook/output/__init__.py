from .raster import RasterCanvas, CanvasRenderingContext2D, ImageData, parse_color
from .elements import Element, CanvasElement, create_output_region, generate_element_id
from .handlers import (
    OutputHandler, TextOutputHandler, ErrorOutputHandler, GraphicsOutputHandler,
    ChartOutputHandler, DagreOutputHandler, ImageDataOutputHandler,
    Canvas2dOutputHandler, PlotlyOutputHandler,
    output_handlers, output_handler_id_to_handler,
    parse_graphics_args, validate_size_config, TEXT_ELEMENT_CLASS
)
from .context import OutputContext, CellOutputContext, svg_data_uri

__all__ = [
    "RasterCanvas", "CanvasRenderingContext2D", "ImageData", "parse_color",
    "Element", "CanvasElement", "create_output_region", "generate_element_id",
    "OutputHandler", "TextOutputHandler", "ErrorOutputHandler", "GraphicsOutputHandler",
    "ChartOutputHandler", "DagreOutputHandler", "ImageDataOutputHandler",
    "Canvas2dOutputHandler", "PlotlyOutputHandler",
    "output_handlers", "output_handler_id_to_handler",
    "parse_graphics_args", "validate_size_config", "TEXT_ELEMENT_CLASS",
    "OutputContext", "CellOutputContext", "svg_data_uri",
]
