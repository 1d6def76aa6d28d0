"""Conversion of arbitrary result values into text output values."""
import logging
from typing import Any

from .errors import SerializationError
from .types import OutputValue, TexRenderable

logger = logging.getLogger(__name__)

UNDEFINED_TEXT = "[undefined]"
UNPRINTABLE_TEXT = "[unprintable result]"


def transform_text_result(result: Any) -> OutputValue:
    """
    Convert ``result`` to a text OutputValue. Never raises.

    - TeX-capable values render through ``to_tex()`` with ``is_tex`` set
    - ``None`` becomes "[undefined]"
    - everything else goes through ``str()``
    - a conversion that raises falls back to "[unprintable result]"
    """
    try:
        if isinstance(result, TexRenderable) and not isinstance(result, type):
            return OutputValue.text_value(
                str(result.to_tex()),
                is_tex=True,
                inline_tex=bool(getattr(result, "inline_tex", False)),
            )
        if result is None:
            return OutputValue.text_value(UNDEFINED_TEXT)
        return OutputValue.text_value(str(result))
    except Exception as e:
        error = SerializationError(f"cannot convert {type(result).__name__} to text: {e}")
        logger.warning("transform_text_result error: %s", error)
        return OutputValue.text_value(UNPRINTABLE_TEXT)
