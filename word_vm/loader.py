"""
Word VM — Program Image Loader

Image format: a headerless sequence of 16-bit words. The word count is
floor(file_size / 2); an odd trailing byte is ignored. Byte order
defaults to little-endian, which is how the original tool chain wrote
images on x86 hosts.

After loading, the canonical halt word ($5000) is appended unless the
image already ends with it. With no branch instructions, sequential
fetch is then guaranteed to reach a halt.
"""

import logging
from pathlib import Path
from typing import List, Sequence, Union

from .cpu.decoder import HALT_WORD, WordVMError
from .mem.memory import Memory, MEMORY_WORDS

log = logging.getLogger('word_vm.loader')

BYTE_ORDERS = ('little', 'big')


class LoadError(WordVMError):
    """Raised when an image cannot be read or does not fit in memory."""
    def __init__(self, message: str, path: Union[str, Path, None] = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


def words_from_bytes(data: bytes, byteorder: str = 'little') -> List[int]:
    """Split raw image bytes into words; a trailing odd byte is dropped."""
    if byteorder not in BYTE_ORDERS:
        raise ValueError(f"byteorder must be 'little' or 'big', not {byteorder!r}")
    if len(data) % 2:
        log.warning("Image has odd length (%d bytes), ignoring trailing byte",
                    len(data))
    return [int.from_bytes(data[i:i + 2], byteorder)
            for i in range(0, len(data) - 1, 2)]


def read_image(path: Union[str, Path], byteorder: str = 'little') -> List[int]:
    """Read an image file from disk and return its words.

    Raises LoadError if the file is missing or unreadable.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise LoadError(e.strerror or str(e), path) from e
    log.debug("Read %d bytes from %s", len(data), path)
    return words_from_bytes(data, byteorder)


def load_image(memory: Memory, words: Sequence[int]) -> int:
    """Write words into memory from address 0 and append a halt if needed.

    Returns the number of words written, appended halt included.
    Raises LoadError if the image (plus its terminator) exceeds memory.
    """
    count = len(words)
    needs_halt = count == 0 or words[-1] != HALT_WORD

    if count + needs_halt > MEMORY_WORDS:
        raise LoadError(
            f"image of {count} words does not fit in {MEMORY_WORDS}-word memory"
            + (" with a terminating halt" if needs_halt else ""))

    memory.load_words(words, 0)
    if needs_halt:
        memory.write(count, HALT_WORD)
        log.debug("Appended halt word at $%04X", count)
        count += 1
    return count
