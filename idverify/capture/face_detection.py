"""Frame analysis module.

This module detects faces in single video frames and maps the 68-point landmark
model of ``face_recognition`` onto the named keypoints used by the capture
heuristics. Analysis never raises: a frame that cannot be analyzed counts as a
frame without faces so the polling loop keeps running.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from ..models.face import BoundingBox, DetectedFace, Keypoint, KeypointName

logger = logging.getLogger(__name__)

Point = Tuple[int, int]


class FaceDetectionError(Exception):
    """Base exception for face detection errors."""
    pass


class ModelNotInitializedError(FaceDetectionError):
    """Exception raised when the detection model could not be loaded."""
    pass


def _mean_point(points: Sequence[Point]) -> Keypoint:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return Keypoint(x=float(sum(xs)) / len(xs), y=float(sum(ys)) / len(ys))


def _point(point: Point) -> Keypoint:
    return Keypoint(x=float(point[0]), y=float(point[1]))


def landmarks_to_keypoints(landmarks: Dict[str, List[Point]]) -> Dict[KeypointName, Keypoint]:
    """Map ``face_recognition`` landmark groups onto named keypoints.

    Args:
        landmarks: Landmark groups as returned by ``face_recognition.face_landmarks``
            (``left_eye``, ``right_eye``, ``left_eyebrow``, ``right_eyebrow``,
            ``top_lip``, ``bottom_lip`` ...). Missing or short groups are skipped.

    Returns:
        Keypoints keyed by name. The 68-point model has no per-point confidence,
        so every keypoint carries a score of 1.0.
    """
    keypoints: Dict[KeypointName, Keypoint] = {}

    left_eye = landmarks.get("left_eye") or []
    if len(left_eye) >= 4:
        keypoints[KeypointName.LEFT_EYE] = _mean_point(left_eye)
        keypoints[KeypointName.LEFT_EYE_OUTER] = _point(left_eye[0])
        keypoints[KeypointName.LEFT_EYE_INNER] = _point(left_eye[3])

    right_eye = landmarks.get("right_eye") or []
    if len(right_eye) >= 4:
        keypoints[KeypointName.RIGHT_EYE] = _mean_point(right_eye)
        keypoints[KeypointName.RIGHT_EYE_INNER] = _point(right_eye[0])
        keypoints[KeypointName.RIGHT_EYE_OUTER] = _point(right_eye[3])

    if landmarks.get("left_eyebrow"):
        keypoints[KeypointName.LEFT_EYEBROW] = _mean_point(landmarks["left_eyebrow"])
    if landmarks.get("right_eyebrow"):
        keypoints[KeypointName.RIGHT_EYEBROW] = _mean_point(landmarks["right_eyebrow"])

    # top_lip starts at the left corner (48), runs over the upper edge to the
    # right corner (54); bottom_lip starts at 54 and reaches 57 at index 3.
    top_lip = landmarks.get("top_lip") or []
    if len(top_lip) >= 7:
        keypoints[KeypointName.MOUTH_LEFT] = _point(top_lip[0])
        keypoints[KeypointName.MOUTH_TOP] = _point(top_lip[3])
        keypoints[KeypointName.MOUTH_RIGHT] = _point(top_lip[6])
    bottom_lip = landmarks.get("bottom_lip") or []
    if len(bottom_lip) >= 4:
        keypoints[KeypointName.MOUTH_BOTTOM] = _point(bottom_lip[3])

    return keypoints


class FaceDetector:
    """Detects faces and keypoints in video frames."""

    # Constants for face detection
    MIN_FACE_RATIO = 0.01   # Minimum face area relative to frame
    MAX_FACES = 4           # Faces reported per frame
    UPSAMPLE_TIMES = 0      # HOG upsampling; frames are already 640x480

    def __init__(self, max_faces: int = MAX_FACES):
        self.max_faces = max_faces
        self._backend = None

    @property
    def is_initialized(self) -> bool:
        return self._backend is not None

    def initialize(self) -> None:
        """Load the face_recognition models.

        Raises:
            ModelNotInitializedError: If the model files cannot be loaded.
        """
        if self._backend is not None:
            return
        try:
            import face_recognition
        except Exception as e:
            raise ModelNotInitializedError(f"Failed to load face model: {str(e)}") from e
        self._backend = face_recognition
        logger.info("Face detection model loaded")

    def detect_faces(self, frame: np.ndarray) -> List[DetectedFace]:
        """Detect faces in a BGR frame using the HOG face detector.

        Args:
            frame: Input frame in BGR format.

        Returns:
            Detected faces, largest first, at most ``max_faces``.

        Raises:
            ModelNotInitializedError: If ``initialize`` has not been called.
        """
        if self._backend is None:
            raise ModelNotInitializedError("Face detection model not initialized")

        # face_recognition works on RGB
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        locations = self._backend.face_locations(
            rgb_frame, number_of_times_to_upsample=self.UPSAMPLE_TIMES, model="hog"
        )
        if not locations:
            return []

        landmarks_list = self._backend.face_landmarks(rgb_frame, face_locations=locations)

        height, width = frame.shape[:2]
        frame_area = float(height * width)
        faces: List[DetectedFace] = []

        for (top, right, bottom, left), landmarks in zip(locations, landmarks_list):
            box = BoundingBox(
                x=float(left),
                y=float(top),
                width=float(right - left),
                height=float(bottom - top),
            )
            # Filter out small faces (likely false detections)
            if box.area / frame_area < self.MIN_FACE_RATIO:
                continue
            faces.append(
                DetectedFace(box=box, keypoints=landmarks_to_keypoints(landmarks), confidence=1.0)
            )

        # Larger faces are usually the subject
        faces.sort(key=lambda face: face.box.area, reverse=True)
        return faces[: self.max_faces]

    def analyze(self, frame: Optional[np.ndarray]) -> List[DetectedFace]:
        """Analyze one frame for the polling loop.

        Returns an empty list when the model is not loaded yet, the frame is
        missing, or detection fails; errors are logged, never raised.
        """
        if self._backend is None or frame is None:
            return []
        try:
            return self.detect_faces(frame)
        except Exception as e:
            logger.warning(f"Face detection error: {str(e)}")
            return []


# Create global detector instance
detector = FaceDetector()