from .core.boundary import BoundaryReport, check_boundary
from .core.composite import CompositeResult, composite, composite_with_report
from .core.feather import feather
from .core.hole import cut_hole
from .core.raster import (
    RasterBuffer,
    SelectionMask,
    decode_image,
    encode_png,
    from_data_url,
    resize_to_match,
    to_data_url,
    with_alpha_from,
)
from .core.session import EditRequest, MagicEditSession
from .errors import (
    DimensionMismatch,
    EmptyMask,
    EmptyMaskWarning,
    ImageDecodeError,
    InvalidParameter,
    RequestInProgress,
)

__all__ = [
    "BoundaryReport",
    "CompositeResult",
    "DimensionMismatch",
    "EditRequest",
    "EmptyMask",
    "EmptyMaskWarning",
    "ImageDecodeError",
    "InvalidParameter",
    "MagicEditSession",
    "RasterBuffer",
    "RequestInProgress",
    "SelectionMask",
    "check_boundary",
    "composite",
    "composite_with_report",
    "cut_hole",
    "decode_image",
    "encode_png",
    "feather",
    "from_data_url",
    "resize_to_match",
    "to_data_url",
    "with_alpha_from",
]
