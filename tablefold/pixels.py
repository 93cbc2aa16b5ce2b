"""
Pixel buffers: the decoded RGBA samples every other module reads.

Decoding is kept separate from analysis. `decode` may touch the filesystem
or a byte stream; everything downstream (`detect_grid`, `crop`, ...) only
ever receives an already-decoded `PixelBuffer`.
"""

import io
import os
from typing import BinaryIO, Union

import numpy as np
import torch
from PIL import Image


class InputUnavailable(RuntimeError):
    """Raised when pixel data is missing or not yet decoded."""


class PixelBuffer:
    """
    Read-only RGBA image.

    Pixels are stored channel-first as a uint8 tensor of shape (4, H, W).
    Operations that change the image produce a new buffer.
    """

    def __init__(self, data: torch.Tensor):
        if data.dim() != 3 or data.shape[0] != 4:
            raise InputUnavailable(
                f"Expected RGBA tensor of shape (4, H, W), got {tuple(data.shape)}")
        if data.shape[1] == 0 or data.shape[2] == 0:
            raise InputUnavailable("Pixel buffer is empty")
        self.data = data.to(torch.uint8).contiguous()

    @property
    def height(self) -> int:
        return self.data.shape[1]

    @property
    def width(self) -> int:
        return self.data.shape[2]

    @classmethod
    def from_numpy(cls, array: np.ndarray) -> 'PixelBuffer':
        """
        Build a buffer from an (H, W, 3) or (H, W, 4) array.

        RGB input gets an opaque alpha channel.
        """
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise InputUnavailable(
                f"Expected (H, W, 3|4) array, got shape {array.shape}")
        array = np.ascontiguousarray(array, dtype=np.uint8)
        if array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array, alpha], axis=2)
        return cls(torch.from_numpy(array).permute(2, 0, 1))

    @classmethod
    def blank(cls, width: int, height: int, color=(255, 255, 255, 255)) -> 'PixelBuffer':
        """Solid-color buffer."""
        data = torch.tensor(color, dtype=torch.uint8).view(4, 1, 1)
        return cls(data.expand(4, height, width).clone())

    def to_numpy(self) -> np.ndarray:
        """(H, W, 4) uint8 copy."""
        return self.data.permute(1, 2, 0).cpu().numpy().copy()

    def luminance(self) -> torch.Tensor:
        """Unnormalized R+G+B sum per pixel, (H, W) int32 in [0, 765]."""
        return self.data[:3].to(torch.int32).sum(dim=0)

    def __eq__(self, other):
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.data.shape == other.data.shape and torch.equal(self.data, other.data)

    def __repr__(self):
        return f"PixelBuffer(width={self.width}, height={self.height})"


def decode(source: Union[bytes, str, os.PathLike, BinaryIO]) -> PixelBuffer:
    """
    Decode an image into a PixelBuffer.

    Args:
        source: Encoded image bytes, a path, or a binary file object

    Returns:
        RGBA PixelBuffer
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        with Image.open(source) as img:
            img = img.convert('RGBA')
            array = np.array(img, dtype=np.uint8)
    except (OSError, ValueError) as exc:
        raise InputUnavailable(f"Could not decode image: {exc}") from exc
    return PixelBuffer.from_numpy(array)


def encode_png(buffer: PixelBuffer) -> bytes:
    """Encode a buffer as PNG bytes."""
    out = io.BytesIO()
    Image.fromarray(buffer.to_numpy()).save(out, format='PNG')
    return out.getvalue()


def save_image(buffer: PixelBuffer, path: Union[str, os.PathLike]):
    """Write a buffer to disk; format follows the file extension."""
    Image.fromarray(buffer.to_numpy()).save(path)
