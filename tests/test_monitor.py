import asyncio
import threading
import time

from idverify.capture.monitor import CaptureMonitor
from idverify.capture.normalizer import DESKTOP_POLICY
from idverify.capture.session import CaptureSession
from idverify.cli import run_capture

from .conftest import ScriptedAnalyzer, make_face, make_frame


class FakeSource:
    def __init__(self, fail_first=0):
        self.reads = 0
        self.fail_first = fail_first

    def read(self):
        self.reads += 1
        if self.reads <= self.fail_first:
            raise RuntimeError("camera busy")
        return make_frame()


class SlowSource:
    """Blocks in ``read`` and records how many reads overlap."""

    def __init__(self, delay=0.05):
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.reads = 0
        self._lock = threading.Lock()

    def read(self):
        with self._lock:
            self.active += 1
            self.reads += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(self.delay)
        with self._lock:
            self.active -= 1
        return make_frame()


async def _wait_for(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate() and loop.time() < deadline:
        await asyncio.sleep(0.01)
    return predicate()


def _monitor(source, analyzer=None):
    analyzer = analyzer or ScriptedAnalyzer([make_face(x=192)], [make_face(x=222)])
    session = CaptureSession(analyzer)
    return CaptureMonitor(session, source, analysis_interval=0.01, lighting_interval=0.01)


def test_monitor_drives_session_to_capture_ready():
    async def scenario():
        monitor = _monitor(FakeSource())
        monitor.start()
        assert monitor.running
        ready = await _wait_for(lambda: monitor.session.decision.can_capture)
        await monitor.stop()
        return monitor, ready

    monitor, ready = asyncio.run(scenario())
    assert ready
    assert not monitor.running
    assert monitor.session.lighting is not None


def test_monitor_survives_failing_ticks():
    async def scenario():
        source = FakeSource(fail_first=3)
        monitor = _monitor(source)
        monitor.start()
        live = await _wait_for(lambda: monitor.session.liveness.is_live)
        await monitor.stop()
        return source, live

    source, live = asyncio.run(scenario())
    assert live
    assert source.reads > 3


def test_run_capture_returns_jpeg():
    monitor = _monitor(FakeSource())
    data = asyncio.run(run_capture(monitor, DESKTOP_POLICY, timeout=2.0, poll_interval=0.01))
    assert data is not None
    assert data[:2] == b"\xff\xd8"
    assert not monitor.running


def test_run_capture_times_out_without_face():
    monitor = _monitor(FakeSource(), analyzer=ScriptedAnalyzer())
    data = asyncio.run(run_capture(monitor, DESKTOP_POLICY, timeout=0.1, poll_interval=0.01))
    assert data is None


def test_camera_reads_never_overlap():
    async def scenario():
        source = SlowSource()
        monitor = _monitor(source)
        monitor.start()
        await asyncio.sleep(0.5)
        await monitor.stop()
        return source

    source = asyncio.run(scenario())
    assert source.reads > 2
    assert source.max_active == 1


def test_session_state_written_on_loop_thread():
    threads = []

    class RecordingSession(CaptureSession):
        def apply_analysis(self, frame, faces):
            threads.append(threading.get_ident())
            return super().apply_analysis(frame, faces)

    async def scenario():
        session = RecordingSession(ScriptedAnalyzer([make_face(x=192)], [make_face(x=222)]))
        monitor = CaptureMonitor(session, FakeSource(), analysis_interval=0.01, lighting_interval=0.01)
        monitor.start()
        await _wait_for(lambda: len(threads) >= 3)
        await monitor.stop()
        return threading.get_ident()

    loop_thread = asyncio.run(scenario())
    assert threads
    assert set(threads) == {loop_thread}
