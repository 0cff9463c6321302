from __future__ import annotations
from typing import NewType

Address = NewType("Address", str)   # 0x-prefixed, checksummed
Topic0  = NewType("Topic0", str)    # 66-char 0x-hash, lowercase
BlockGap = tuple[int, int]          # [start, end) half-open
