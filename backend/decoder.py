import cv2 # type: ignore
import numpy as np # type: ignore

# OpenCV's built-in detector (no extra zbar dependency)
QR_DETECTOR = cv2.QRCodeDetector()


def decode_qr(frame_bgr) -> str | None:
    """
    Returns the decoded payload of the first QR code in the frame, or None.

    "No code in frame" is the normal case while a camera is pointed around,
    so it is not an error.
    """
    if frame_bgr is None or getattr(frame_bgr, "size", 0) == 0:
        return None

    try:
        data, points, _ = QR_DETECTOR.detectAndDecode(frame_bgr)
    except cv2.error:
        return None

    if points is None or not data:
        return None
    return str(data)


def decode_image_bytes(data: bytes) -> str | None:
    """Decode an uploaded JPG/PNG frame. Raises ValueError for unreadable image data."""
    img_array = np.frombuffer(data, np.uint8)
    frame = cv2.imdecode(img_array, cv2.IMREAD_COLOR) if img_array.size else None
    if frame is None:
        raise ValueError("Invalid image data.")
    return decode_qr(frame)
