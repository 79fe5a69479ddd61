"""
Guardrails: checks run on selections before an edit request goes out.
Relaxed: warn on an empty selection unless MAGICEDIT_STRICT=1 is set
or the caller asks for strict mode.
"""
from __future__ import annotations

import os
import warnings
from typing import Optional

from ..core.raster import SelectionMask
from ..errors import EmptyMask, EmptyMaskWarning


def strict_mode() -> bool:
    return os.environ.get("MAGICEDIT_STRICT", "0") == "1"


def check_selection(mask: SelectionMask, strict: Optional[bool] = None) -> bool:
    """Return True when ``mask`` selects at least one pixel.

    An empty selection raises :class:`EmptyMask` in strict mode and emits an
    :class:`EmptyMaskWarning` otherwise.
    """
    if not mask.is_empty():
        return True
    msg = "Guardrail: selection is empty; nothing would be edited."
    if strict or strict_mode():
        raise EmptyMask(msg)
    warnings.warn(EmptyMaskWarning(msg), stacklevel=2)
    return False


__all__ = ["check_selection", "strict_mode"]
