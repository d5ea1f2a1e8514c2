"""Timers driving a capture session from a frame source.

Two loops tick independently: face analysis every ``analysis_interval``
seconds and lighting every ``lighting_interval`` seconds. Blocking work
(reading the camera, running the detector) happens in worker threads so the
event loop stays responsive; only one camera read is in flight at a time and
session state is only written from the loop. A failing tick is logged and the
loop carries on.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Protocol

import cv2
import numpy as np

from .session import CaptureSession

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    def read(self) -> Optional[np.ndarray]:
        ...


class CameraSource:
    """Frames from a local camera through OpenCV."""

    def __init__(self, device: int = 0, width: int = 640, height: int = 480):
        self.capture = cv2.VideoCapture(device)
        self.capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        self.capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

    def read(self) -> Optional[np.ndarray]:
        ok, frame = self.capture.read()
        return frame if ok else None

    def release(self) -> None:
        self.capture.release()


class CaptureMonitor:
    def __init__(
        self,
        session: CaptureSession,
        source: FrameSource,
        analysis_interval: float = 0.1,
        lighting_interval: float = 1.0,
    ):
        self.session = session
        self.source = source
        self.analysis_interval = analysis_interval
        self.lighting_interval = lighting_interval
        self._tasks: List[asyncio.Task] = []
        self._read_lock: Optional[asyncio.Lock] = None

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def _read(self) -> Optional[np.ndarray]:
        async with self._read_lock:
            return await asyncio.to_thread(self.source.read)

    async def _analyze_once(self) -> None:
        frame = await self._read()
        if frame is None:
            return
        faces = await asyncio.to_thread(self.session.analyzer.analyze, frame)
        self.session.latest_frame = frame
        self.session.apply_analysis(frame, faces)

    async def _sample_lighting_once(self) -> None:
        frame = await self._read()
        self.session.sample_lighting(frame)

    async def _tick(self, name: str, step: Callable[[], Awaitable[None]], interval: float) -> None:
        while True:
            try:
                await step()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"{name} tick failed: {str(e)}")
            await asyncio.sleep(interval)

    def start(self) -> None:
        if self.running:
            return
        self._read_lock = asyncio.Lock()
        self._tasks = [
            asyncio.create_task(self._tick("analysis", self._analyze_once, self.analysis_interval)),
            asyncio.create_task(self._tick("lighting", self._sample_lighting_once, self.lighting_interval)),
        ]
        logger.info("Capture monitor started")

    async def stop(self) -> None:
        """Cancel both timers and wait for them to finish."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Capture monitor stopped")
