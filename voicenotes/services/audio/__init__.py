"""
Audio module - chunk accumulation, transport encoding and PCM utilities.
"""

from .codec import decode_base64_chunks, encode_payload
from .processor import AudioProcessor
from .recorder import ChunkBuffer

__all__ = ["AudioProcessor", "ChunkBuffer", "decode_base64_chunks", "encode_payload"]
