"""Compiled overlay snapshot and the base class for output providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..config import DisplayConfigError


@dataclass(frozen=True)
class CompiledOverlay:
    """Everything a compile produces, ready to be embedded in a document."""

    styles: str
    definitions: tuple[str, ...]
    fragments: tuple[str, ...]
    duration_ms: int
    display_errors: tuple[DisplayConfigError, ...] = ()


class OutputProvider(ABC):
    """Abstract base class for output format providers."""

    def __init__(self, path: str = ""):
        """
        Initialize the provider with an output file path.

        Args:
            path: Path to the output file
        """
        self.path = path

    @abstractmethod
    def encode(self, overlay: CompiledOverlay) -> bytes:
        """
        Encode a compiled overlay into the output format.

        Args:
            overlay: Result of a compile

        Returns:
            Encoded output as bytes
        """
        raise NotImplementedError

    def write(self, data: bytes) -> None:
        """
        Write encoded data to a file.

        Args:
            data: Encoded data to write
        """
        if not self.path:
            raise ValueError("Output path not set")
        with open(self.path, "wb") as f:
            f.write(data)
