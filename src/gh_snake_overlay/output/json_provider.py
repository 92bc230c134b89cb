"""JSON output for callers that assemble the document themselves."""

import json

from .base import CompiledOverlay, OutputProvider


class JsonOutputProvider(OutputProvider):
    """Output provider for a machine-readable compile result."""

    def encode(self, overlay: CompiledOverlay) -> bytes:
        payload = {
            "styles": overlay.styles,
            "definitions": list(overlay.definitions),
            "fragments": list(overlay.fragments),
            "durationMs": overlay.duration_ms,
            "displayErrors": [
                {"display": error.display_index, "message": error.reason}
                for error in overlay.display_errors
            ],
        }
        return json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")
