"""Plain text output: a style block, a defs block and one fragment per line."""

from .base import CompiledOverlay, OutputProvider


class TextOutputProvider(OutputProvider):
    """Output provider for markup ready to paste into a document."""

    def encode(self, overlay: CompiledOverlay) -> bytes:
        lines = [f"<style>{overlay.styles}</style>"]
        if overlay.definitions:
            lines.append(f"<defs>{''.join(overlay.definitions)}</defs>")
        lines.extend(overlay.fragments)
        return ("\n".join(lines) + "\n").encode("utf-8")
