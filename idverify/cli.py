"""Capture a verification selfie from a local camera.

Runs the capture session against the camera, prints guidance whenever the
gate decision changes and writes the normalized JPEG once capture is allowed.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from .capture.face_detection import ModelNotInitializedError, detector
from .capture.monitor import CameraSource, CaptureMonitor
from .capture.normalizer import CropStrategy, NormalizationError, NormalizationPolicy
from .capture.session import CaptureSession
from .core.config import get_settings
from .core.logging import setup_logging

logger = logging.getLogger(__name__)


async def run_capture(
    monitor: CaptureMonitor,
    policy: NormalizationPolicy,
    timeout: float,
    poll_interval: float = 0.2,
) -> Optional[bytes]:
    """Drive ``monitor`` until the gate opens and a capture succeeds, or time runs out."""
    session = monitor.session
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    last_label = None

    monitor.start()
    try:
        while loop.time() < deadline:
            decision = session.decision
            if decision.label != last_label:
                last_label = decision.label
                print(decision.message or decision.label)
            if decision.can_capture:
                try:
                    return session.capture(policy).data
                except NormalizationError as e:
                    logger.warning(f"Capture failed, retrying: {str(e)}")
            await asyncio.sleep(poll_interval)
        return None
    finally:
        await monitor.stop()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Capture a verification selfie from a camera")
    parser.add_argument("output", help="Where to write the JPEG")
    parser.add_argument("--device", type=int, default=0, help="Camera index (default: 0)")
    parser.add_argument(
        "--crop",
        choices=[strategy.value for strategy in CropStrategy],
        default=CropStrategy.LETTERBOX.value,
        help="Crop strategy (default: letterbox)",
    )
    parser.add_argument("--timeout", type=float, default=60.0, help="Seconds to wait (default: 60)")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(level=settings.log_level)

    try:
        detector.initialize()
    except ModelNotInitializedError as e:
        logger.error(str(e))
        return 1

    source = CameraSource(device=args.device)
    session = CaptureSession(detector, lighting_interval=settings.lighting_interval_seconds)
    monitor = CaptureMonitor(
        session,
        source,
        analysis_interval=settings.analysis_interval_seconds,
        lighting_interval=settings.lighting_interval_seconds,
    )
    policy = NormalizationPolicy(crop_strategy=CropStrategy(args.crop))

    try:
        data = asyncio.run(run_capture(monitor, policy, args.timeout))
    finally:
        source.release()

    if data is None:
        print("No capture: timed out", file=sys.stderr)
        return 2

    with open(args.output, "wb") as f:
        f.write(data)
    print(f"Saved {args.output} ({len(data) / 1024:.1f}KB)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
