# ocr/preprocess.py
from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from PIL import Image

try:
    import cv2
    CV2_AVAILABLE = True
except ImportError:
    cv2 = None
    CV2_AVAILABLE = False

from statement_ocr.ocr.classes import PreprocessSettings

logger = logging.getLogger(__name__)


def _probe_opencv() -> bool:
    """Run one tiny threshold so missing or broken OpenCV builds are caught up front."""
    if not CV2_AVAILABLE:
        logger.info("OpenCV not installed; using basic preprocessing")
        return False
    try:
        sample = np.zeros((4, 4), dtype=np.uint8)
        cv2.threshold(sample, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return True
    except Exception as exc:
        logger.info("Enhanced preprocessing unavailable (%s); using basic mode", exc)
        return False


def _to_gray(img: np.ndarray) -> np.ndarray:
    if img.ndim == 2:
        return img
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_RGBA2GRAY)
    return cv2.cvtColor(img, cv2.COLOR_RGB2GRAY)


class ImagePreprocessor:
    """
    Best-effort contrast cleanup before OCR.

    basic:    grayscale + fixed luminance cutoff (Pillow/numpy).
    enhanced: grayscale -> Otsu -> contour skew estimate -> deskew ->
              median blur -> adaptive threshold (OpenCV).
    Never raises: on any failure the caller gets its image back.
    """

    def __init__(self, settings: Optional[PreprocessSettings] = None):
        self.settings = settings or PreprocessSettings()
        self._enhanced_ok: Optional[bool] = None

    @property
    def enhanced_available(self) -> bool:
        if self._enhanced_ok is None:
            self._enhanced_ok = _probe_opencv()
        return self._enhanced_ok

    def process(self, img: np.ndarray) -> np.ndarray:
        if self.settings.mode == "enhanced" and self.enhanced_available:
            try:
                return self.enhanced(img)
            except Exception as exc:  # best-effort stage
                logger.warning("Enhanced preprocessing failed (%s); using original image", exc)
                return img
        try:
            return self.basic(img)
        except Exception as exc:
            logger.warning("Basic preprocessing failed (%s); using original image", exc)
            return img

    # ---------------- basic ----------------
    def basic(self, img: np.ndarray) -> np.ndarray:
        gray = np.asarray(Image.fromarray(img).convert("L"))
        return np.where(gray > self.settings.threshold_cutoff, 255, 0).astype(np.uint8)

    # ---------------- enhanced ----------------
    def estimate_skew(self, binary_inv: np.ndarray) -> float:
        """Median minAreaRect angle over text-sized contours; 0.0 if nothing usable."""
        contours, _ = cv2.findContours(binary_inv, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        angles = []
        for c in contours:
            if cv2.contourArea(c) <= self.settings.min_contour_area:
                continue
            angle = cv2.minAreaRect(c)[-1]
            if angle > 45:
                angle -= 90
            angles.append(angle)
        if not angles:
            return 0.0
        return float(np.median(angles))

    def deskew(self, gray: np.ndarray, angle: float) -> np.ndarray:
        s = self.settings
        if not (s.min_skew_angle < abs(angle) < s.max_skew_angle):
            return gray
        logger.debug("Deskewing page by %.2f degrees", angle)
        (h, w) = gray.shape[:2]
        M = cv2.getRotationMatrix2D((w / 2, h / 2), angle, 1.0)
        return cv2.warpAffine(gray, M, (w, h), flags=cv2.INTER_CUBIC, borderMode=cv2.BORDER_REPLICATE)

    def enhanced(self, img: np.ndarray) -> np.ndarray:
        s = self.settings
        gray = _to_gray(img)
        binary_inv = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY_INV + cv2.THRESH_OTSU)[1]

        if s.deskew:
            gray = self.deskew(gray, self.estimate_skew(binary_inv))

        out = cv2.medianBlur(gray, s.median_kernel)
        out = cv2.adaptiveThreshold(
            out, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY,
            s.adaptive_block_size, s.adaptive_C
        )
        return out
