# ============================================================
# FILE: capture/camera.py
# ============================================================

import cv2
import numpy as np
import threading
from typing import Optional, Tuple
import logging

from utils.exceptions import CaptureError

logger = logging.getLogger(__name__)

class Camera:
    def __init__(self, device_id: int = 0, resolution: Tuple[int, int] = (640, 480),
                 jpeg_quality: int = 90):
        self.device_id = device_id
        self.resolution = resolution
        self.jpeg_quality = jpeg_quality
        self.cap = None
        self._lock = threading.Lock()
    
    def initialize(self):
        with self._lock:
            self.cap = cv2.VideoCapture(self.device_id)
            if not self.cap.isOpened():
                self.cap = None
                raise CaptureError(f"Failed to open camera {self.device_id}")
            
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.resolution[0])
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.resolution[1])
        logger.info(f"Camera initialized: {self.resolution[0]}x{self.resolution[1]}")
    
    def is_ready(self) -> bool:
        return self.cap is not None and self.cap.isOpened()
    
    def read(self) -> Optional[np.ndarray]:
        with self._lock:
            if not self.cap or not self.cap.isOpened():
                logger.debug("Camera not available")
                return None
            
            ret, frame = self.cap.read()
        if not ret:
            logger.error("Failed to read frame")
            return None
        
        return frame
    
    def encode_jpeg(self, frame: np.ndarray) -> bytes:
        ret, buffer = cv2.imencode(
            '.jpg', frame, [int(cv2.IMWRITE_JPEG_QUALITY), self.jpeg_quality]
        )
        if not ret:
            raise CaptureError("Failed to encode frame as JPEG")
        return buffer.tobytes()
    
    def capture_still(self) -> bytes:
        if not self.is_ready():
            raise CaptureError("Camera not initialized")
        
        frame = self.read()
        if frame is None:
            raise CaptureError("Failed to read frame")
        
        return self.encode_jpeg(frame)
    
    def is_connected(self) -> bool:
        return self.is_ready()
    
    def restart(self):
        logger.info("Restarting camera...")
        self.release()
        self.initialize()
    
    def release(self):
        with self._lock:
            if self.cap:
                self.cap.release()
                self.cap = None
    
    def __del__(self):
        self.release()
