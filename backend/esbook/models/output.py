from pydantic import BaseModel, ConfigDict
from typing import Literal, Optional


class TextOutputData(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ErrorOutputData(BaseModel):
    type: Literal["error"] = "error"
    message: str


class GraphicsOutputData(BaseModel):
    """Rendered graphics; ``image_uri`` is all that is needed to redisplay it."""
    model_config = ConfigDict(extra="allow")

    type: Literal["chart", "dagre", "image_data", "canvas2d", "plotly"]
    image_uri: str
    image_format: Optional[str] = None
    image_format_quality: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
