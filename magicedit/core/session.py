"""
Edit session: runs one Magic Edit request at a time.

A request moves through four steps:
- feather the painted selection
- cut a hole in the base image and hand it to the generator
- composite the generator's result back through the feathered mask
- check whether the generator touched anything outside the mask

The session only enforces "one request in flight"; the stages themselves are
pure functions and hold no state between calls.
"""
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from functools import cached_property
from typing import Callable, Optional, Union

import magicedit_config

from ..errors import ImageDecodeError, InvalidParameter, RequestInProgress
from ..tools.guardrails import check_selection
from .boundary import BoundaryReport, _check_threshold, _check_tolerance
from .composite import CompositeResult, composite_with_report
from .feather import _check_radius, feather
from .hole import cut_hole
from .raster import (
    RasterBuffer,
    SelectionMask,
    decode_image,
    encode_png,
    ensure_same_size,
    from_data_url,
    resize_to_match,
    to_data_url,
)

logger = logging.getLogger(__name__)

FillSource = Union[RasterBuffer, bytes, str]
Generator = Callable[[bytes], Union[RasterBuffer, bytes, str]]


@dataclass(eq=False)
class EditRequest:
    base: RasterBuffer
    raw_mask: SelectionMask
    mask: SelectionMask
    hole: RasterBuffer
    skipped: bool = False
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    @cached_property
    def hole_png(self) -> bytes:
        return encode_png(self.hole)

    @property
    def hole_data_url(self) -> str:
        return to_data_url(self.hole)


def _coerce_fill(fill: FillSource) -> RasterBuffer:
    if isinstance(fill, RasterBuffer):
        return fill
    if isinstance(fill, (bytes, bytearray, memoryview)):
        return decode_image(bytes(fill))
    if isinstance(fill, str):
        return from_data_url(fill)
    raise ImageDecodeError(f"unsupported fill type: {type(fill).__name__}")


class MagicEditSession:
    def __init__(
        self,
        feather_radius: Optional[int] = None,
        tolerance: Optional[float] = None,
        outside_threshold: Optional[int] = None,
        strict_empty: Optional[bool] = None,
    ):
        config = magicedit_config.load_config()
        self.feather_radius = _check_radius(
            config["feather"]["radius"] if feather_radius is None else feather_radius
        )
        self.tolerance = _check_tolerance(config["boundary"]["tolerance"] if tolerance is None else tolerance)
        self.outside_threshold = _check_threshold(
            config["boundary"]["outside_threshold"] if outside_threshold is None else outside_threshold
        )
        self.strict_empty = bool(config["masks"]["strict_empty"]) if strict_empty is None else strict_empty
        self._lock = threading.Lock()
        self._active: Optional[EditRequest] = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def begin(self, base: RasterBuffer, raw_mask: SelectionMask) -> EditRequest:
        """Feather ``raw_mask`` and cut the hole image for the generator."""
        if not self._lock.acquire(blocking=False):
            raise RequestInProgress("an edit request is already in progress; wait for it to finish")
        try:
            ensure_same_size(base=base, mask=raw_mask)
            if not check_selection(raw_mask, strict=self.strict_empty):
                logger.info("Empty selection; skipping the generator round trip")
                request = EditRequest(base=base, raw_mask=raw_mask, mask=raw_mask, hole=base, skipped=True)
            else:
                logger.info("Step 1: feathering mask (radius %spx)", self.feather_radius)
                mask = feather(raw_mask, self.feather_radius)
                logger.info("Step 2: cutting transparent hole into base image")
                hole = cut_hole(base, mask)
                request = EditRequest(base=base, raw_mask=raw_mask, mask=mask, hole=hole)
            self._active = request
        except BaseException:
            self._lock.release()
            raise
        logger.debug("Request %s started", request.request_id)
        return request

    def complete(self, request: EditRequest, fill: Optional[FillSource] = None) -> CompositeResult:
        """Composite ``fill`` through the request's mask and release the session.

        Call from the thread that began ``request``; the in-flight slot is not
        shared between threads.
        """
        if request is not self._active:
            raise InvalidParameter("request is not active in this session")
        try:
            if request.skipped:
                return CompositeResult(
                    image=RasterBuffer(request.base.width, request.base.height, request.base.data),
                    report=BoundaryReport(violated=False, max_delta=0, violating_pixel_count=0),
                )
            if fill is None:
                raise ImageDecodeError("a fill image is required to complete the request")
            image = _coerce_fill(fill)
            if image.size != request.base.size:
                logger.warning(
                    "Generator returned %dx%d, resizing to %dx%d",
                    image.width,
                    image.height,
                    request.base.width,
                    request.base.height,
                )
                image = resize_to_match(image, request.base.width, request.base.height)

            logger.info("Step 4: compositing result through feathered mask")
            result = composite_with_report(
                request.base,
                image,
                request.mask,
                self.tolerance,
                threshold=self.outside_threshold,
            )
            if result.report.violated:
                logger.warning(
                    "Generator changed %d pixels outside the mask (max delta %d); corrected client-side",
                    result.report.violating_pixel_count,
                    result.report.max_delta,
                )
            else:
                logger.info("Generator respected the mask boundary")
            return result
        finally:
            self._release(request)

    def cancel(self, request: EditRequest) -> None:
        """Abandon ``request`` without compositing. Same thread rule as :meth:`complete`."""
        if request is not self._active:
            logger.debug("Request %s is not active; nothing to cancel", request.request_id)
            return
        logger.info("Request %s cancelled", request.request_id)
        self._release(request)

    def run(self, base: RasterBuffer, raw_mask: SelectionMask, generate: Generator) -> CompositeResult:
        """Run a full edit, calling ``generate(hole_png)`` for the fill image."""
        request = self.begin(base, raw_mask)
        fill: Optional[FillSource] = None
        if not request.skipped:
            logger.info("Step 3: sending hole image to generator")
            try:
                fill = generate(request.hole_png)
            except BaseException:
                self.cancel(request)
                raise
        return self.complete(request, fill)

    def _release(self, request: EditRequest) -> None:
        if self._active is request:
            self._active = None
            self._lock.release()


__all__ = ["EditRequest", "MagicEditSession"]
