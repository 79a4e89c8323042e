from abc import ABC, abstractmethod


class BaseImageCodec(ABC):
    """Contract for lossy image recompression adapters."""

    @abstractmethod
    def recompress(self, content: bytes) -> bytes:
        """Return a recompressed copy of the image.

        Never raises: unsupported or undecodable images come back unchanged.
        """
