"""JSON text codec for wire frames."""

import json
from typing import Any

from erp_client.domain.exceptions import FrameDecodeError


def encode_frame(frame: dict[str, Any]) -> str:
    """Serialize a frame to JSON text.

    Raises:
        TypeError: If the frame contains values JSON cannot represent
    """
    return json.dumps(frame, ensure_ascii=False)


def decode_frame(raw: Any) -> dict[str, Any]:
    """Parse inbound JSON text into a frame mapping.

    Raises:
        FrameDecodeError: If ``raw`` is not JSON or not a JSON object
    """
    try:
        frame = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise FrameDecodeError(raw, original_error=e) from e

    if not isinstance(frame, dict):
        raise FrameDecodeError(raw, "Inbound frame is not a JSON object")
    return frame
