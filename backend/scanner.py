import argparse
import logging
import os
import threading
from pathlib import Path
from typing import Callable, Literal, Protocol

import cv2 # type: ignore

from backend.config import CAMERA_INDEX, LOG_LEVEL, SCAN_FRAME_INTERVAL_SECONDS
from backend.decoder import decode_qr
from backend.services.checkin import CheckInOrchestrator, CheckInResult
from backend.services.state import SchoolState
from database.db import create_tables

logger = logging.getLogger(__name__)

ScannerState = Literal["idle", "scanning"]


class CameraError(Exception):
    pass


class CameraPermissionDenied(CameraError):
    pass


class CameraUnavailable(CameraError):
    pass


class CameraSource(Protocol):
    def read(self) -> tuple[bool, object]: ...

    def release(self) -> None: ...


class OpenCVCamera:
    def __init__(self, index: int | str = CAMERA_INDEX) -> None:
        if isinstance(index, int):
            device = Path(f"/dev/video{index}")
            if device.exists() and not os.access(device, os.R_OK | os.W_OK):
                raise CameraPermissionDenied(f"No permission to open {device}")

        self._capture = cv2.VideoCapture(index)
        if not self._capture.isOpened():
            self._capture.release()
            raise CameraUnavailable(f"Could not open camera {index!r}")

    def read(self):
        return self._capture.read()

    def release(self) -> None:
        self._capture.release()


class FrameScanner:
    """
    Polls a camera frame by frame until a QR code decodes or stop() is called.

    The camera is held only inside run() and released on every way out of it.
    stop() may be called from another thread; the loop checks the flag before
    each frame, so no frame is read after the flag is seen.
    """

    def __init__(
        self,
        camera_factory: Callable[[], CameraSource],
        *,
        decode: Callable[[object], str | None] = decode_qr,
        frame_interval: float = SCAN_FRAME_INTERVAL_SECONDS,
    ) -> None:
        self._camera_factory = camera_factory
        self._decode = decode
        self.frame_interval = frame_interval
        self._stop = threading.Event()
        self.state: ScannerState = "idle"
        self.frames_sampled = 0

    def stop(self) -> None:
        self._stop.set()

    def run(self, on_started: Callable[[], object] | None = None) -> str | None:
        self.frames_sampled = 0
        # a stop() that arrived while idle must not cancel this scan
        self._stop.clear()
        # CameraError propagates before any frame is touched
        camera = self._camera_factory()
        self.state = "scanning"
        logger.info("Camera acquired; scanning")
        try:
            if on_started is not None:
                on_started()
            while not self._stop.is_set():
                ok, frame = camera.read()
                if not ok:
                    raise CameraUnavailable("Camera stopped delivering frames")
                self.frames_sampled += 1

                code = self._decode(frame)
                if code:
                    return code

                if self._stop.wait(self.frame_interval):
                    break
            return None
        finally:
            camera.release()
            self.state = "idle"
            logger.info("Camera released after %d frames", self.frames_sampled)


def scan_and_check_in(orchestrator: CheckInOrchestrator, scanner: FrameScanner) -> CheckInResult | None:
    """
    One camera check-in: scan until a code shows up, then hand it over.

    Returns None when the scan was stopped before any code was read.
    """
    if orchestrator.is_processing:
        return None

    try:
        code = scanner.run(on_started=orchestrator.begin_scanning)
    except CameraPermissionDenied:
        return orchestrator.report_camera_failure("permission_denied")
    except CameraUnavailable:
        return orchestrator.report_camera_failure("camera_unavailable")

    if code is None:
        orchestrator.cancel_scanning()
        return None
    return orchestrator.submit(code, source="camera")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Scan student QR codes from a local camera.")
    parser.add_argument("--camera", default=None, help="Camera index or capture URL.")
    parser.add_argument("--once", action="store_true", help="Stop after the first check-in.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    camera_index: int | str = CAMERA_INDEX
    if args.camera is not None:
        camera_index = int(args.camera) if args.camera.isdigit() else args.camera

    create_tables()
    state = SchoolState()
    if not state.load():
        logger.warning("Starting with an empty school snapshot; store load failed")
    orchestrator = CheckInOrchestrator(state)
    scanner = FrameScanner(lambda: OpenCVCamera(camera_index))

    print("Scanner running. Press Ctrl+C to quit.")
    try:
        while True:
            result = scan_and_check_in(orchestrator, scanner)
            if result is None:
                break
            print(f"[{result['outcome']}] {result['message']}")
            if result["outcome"] in ("PERMISSION_DENIED", "CAMERA_UNAVAILABLE"):
                return 1
            if args.once:
                break
    except KeyboardInterrupt:
        scanner.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
