"""
This module contains variables that can be tweaked by the system environment, like the default
image size ceiling. Constants do NOT belong in this module; they are values that should not change
without a code change (e.g. the order bands or the part names) and go into `./constants.py`.
"""

import os
from dataclasses import dataclass

from docx_stream.partition.utils.constants import MiB


@dataclass
class ENVConfig:
    """class for configuring environment parameters"""

    def _get_string(self, var: str, default_value: str = "") -> str:
        """attempt to get the value of var from the os environment; if not present return the
        default_value"""
        return os.environ.get(var, default_value)

    def _get_int(self, var: str, default_value: int) -> int:
        if value := self._get_string(var):
            return int(value)
        return default_value

    def _get_bool(self, var: str, default_value: bool) -> bool:
        if value := self._get_string(var):
            return value.lower() in ("true", "1", "t")
        return default_value

    @property
    def DOCX_STREAM_MAX_IMAGE_SIZE_BYTES(self) -> int:
        """images larger than this many bytes are left out of the element stream"""
        return self._get_int("DOCX_STREAM_MAX_IMAGE_SIZE_BYTES", 10 * MiB)

    @property
    def DOCX_STREAM_LARGE_FILE_BYTES(self) -> int:
        """documents larger than this many bytes get a LARGE_FILE warning from validation"""
        return self._get_int("DOCX_STREAM_LARGE_FILE_BYTES", 100 * MiB)

    @property
    def DOCX_STREAM_NORMALIZE_WHITESPACE(self) -> bool:
        """default for the `normalize_whitespace` option"""
        return self._get_bool("DOCX_STREAM_NORMALIZE_WHITESPACE", True)


env_config = ENVConfig()
