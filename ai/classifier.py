# ============================================================
# FILE: ai/classifier.py
# Image classifiers behind the detection pipeline
# ============================================================

import logging
import random
import threading
import time
from typing import Callable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from ai.model_loader import ModelLoader, load_labels
from detection.models import DEFAULT_THREAT_CLASSES
from utils.exceptions import ClassifyError

logger = logging.getLogger(__name__)

class Classifier:
    """Maps an encoded still image to a (label, confidence) pair."""

    def is_ready(self) -> bool:
        raise NotImplementedError

    def load(self):
        raise NotImplementedError

    def classify(self, image: bytes) -> Tuple[str, float]:
        raise NotImplementedError

class TFLiteClassifier(Classifier):
    """
    Single-label image classifier for MobileNet-style TFLite models

    Expects an input tensor of shape [1, height, width, 3] and a single output
    of class scores. Quantized models are fed uint8 pixels and their outputs
    are dequantized; float models are normalized with input_mean/input_std.
    Outputs that are not already probabilities go through a softmax.
    """

    def __init__(self, model_path: str, labels_path: Optional[str] = None,
                 use_edge_tpu: bool = False, input_mean: float = 127.5,
                 input_std: float = 127.5,
                 loader_factory: Callable[..., ModelLoader] = ModelLoader):
        self.model_path = model_path
        self.labels_path = labels_path
        self.use_edge_tpu = use_edge_tpu
        self.input_mean = input_mean
        self.input_std = input_std
        self.loader_factory = loader_factory

        self.labels: List[str] = []
        self.interpreter = None
        self.input_details = None
        self.output_details = None
        self._lock = threading.Lock()

    def is_ready(self) -> bool:
        return self.interpreter is not None

    def load(self):
        loader = self.loader_factory(self.model_path, self.use_edge_tpu)
        self.labels = load_labels(self.labels_path)
        self.input_details = loader.get_input_details()
        self.output_details = loader.get_output_details()

        self.input_height = int(self.input_details[0]['shape'][1])
        self.input_width = int(self.input_details[0]['shape'][2])
        self.is_quantized = self.input_details[0]['dtype'] in [np.uint8, np.int8]
        self.interpreter = loader.get_interpreter()

        logger.info(f"Classifier initialized:")
        logger.info(f"  - Input size: {self.input_width}x{self.input_height}")
        logger.info(f"  - Quantized: {self.is_quantized}")
        logger.info(f"  - Labels: {len(self.labels)}")

    def preprocess(self, image: bytes) -> np.ndarray:
        frame = cv2.imdecode(np.frombuffer(image, dtype=np.uint8), cv2.IMREAD_COLOR)
        if frame is None:
            raise ClassifyError("Could not decode image")

        processed = cv2.resize(frame, (self.input_width, self.input_height))
        processed = cv2.cvtColor(processed, cv2.COLOR_BGR2RGB)
        processed = np.expand_dims(processed, axis=0)

        if self.is_quantized:
            if self.input_details[0]['dtype'] == np.int8:
                return (processed.astype(np.int16) - 128).astype(np.int8)
            return processed.astype(np.uint8)
        return (processed.astype(np.float32) - self.input_mean) / self.input_std

    def dequantize(self, data: np.ndarray, output_detail: dict) -> np.ndarray:
        if data.dtype in [np.uint8, np.int8]:
            quant_params = output_detail.get('quantization_parameters', {})
            scales = quant_params.get('scales', [])
            zero_points = quant_params.get('zero_points', [])
            scale = scales[0] if len(scales) else 1.0
            zero_point = zero_points[0] if len(zero_points) else 0
            return (data.astype(np.float32) - zero_point) * scale

        return data.astype(np.float32)

    def to_probabilities(self, scores: np.ndarray) -> np.ndarray:
        if scores.min() >= 0.0 and scores.max() <= 1.0:
            return scores
        shifted = np.exp(scores - scores.max())
        return shifted / shifted.sum()

    def label_for(self, index: int) -> str:
        if 0 <= index < len(self.labels):
            return self.labels[index]
        return f"class_{index}"

    def classify(self, image: bytes) -> Tuple[str, float]:
        if not self.is_ready():
            raise ClassifyError("Model not loaded")

        input_data = self.preprocess(image)

        with self._lock:
            self.interpreter.set_tensor(self.input_details[0]['index'], input_data)
            self.interpreter.invoke()
            output = self.interpreter.get_tensor(self.output_details[0]['index'])

        scores = self.dequantize(np.asarray(output), self.output_details[0]).reshape(-1)
        if scores.size == 0:
            raise ClassifyError("Model returned no scores")

        probabilities = self.to_probabilities(scores)
        index = int(np.argmax(probabilities))
        confidence = float(np.clip(probabilities[index], 0.0, 1.0))
        label = self.label_for(index)

        logger.debug(f"Top prediction: {label} ({confidence:.2f})")
        return label, confidence

class SimulatedClassifier(Classifier):
    """
    Stand-in classifier for demos and bench tests without a model.

    Reports a threat label with probability threat_probability, otherwise
    "background". Pass a seed for repeatable runs.
    """

    BACKGROUND_LABEL = "background"

    def __init__(self, threat_labels: Sequence[str] = DEFAULT_THREAT_CLASSES,
                 threat_probability: float = 1 / 3, seed: Optional[int] = None,
                 load_delay: float = 0.0):
        if not threat_labels:
            raise ValueError("threat_labels must not be empty")
        if not 0.0 <= threat_probability <= 1.0:
            raise ValueError("threat_probability must be within [0, 1]")

        self.threat_labels = list(threat_labels)
        self.threat_probability = threat_probability
        self.load_delay = load_delay
        self.rng = random.Random(seed)
        self._ready = False

    def is_ready(self) -> bool:
        return self._ready

    def load(self):
        if self.load_delay > 0:
            time.sleep(self.load_delay)
        self._ready = True
        logger.info("Simulated classifier ready")

    def classify(self, image: bytes) -> Tuple[str, float]:
        if not self._ready:
            raise ClassifyError("Model not loaded")

        if self.rng.random() < self.threat_probability:
            return self.rng.choice(self.threat_labels), self.rng.uniform(0.70, 0.99)
        return self.BACKGROUND_LABEL, self.rng.uniform(0.50, 0.99)

def create_classifier(config) -> Classifier:
    """Build the classifier selected by the ai.* config section."""
    backend = config.get('ai.backend', 'tflite')
    model_path = config.get('ai.model_path')

    if backend == 'simulated' or not model_path:
        if backend != 'simulated':
            logger.warning("No model configured, using simulated classifier")
        return SimulatedClassifier(
            threat_labels=config.get('pipeline.threat_classes', DEFAULT_THREAT_CLASSES),
            threat_probability=config.get('ai.simulated.threat_probability', 1 / 3),
            seed=config.get('ai.simulated.seed'),
            load_delay=config.get('ai.simulated.load_delay', 0.0)
        )

    if backend != 'tflite':
        raise ClassifyError(f"Unknown classifier backend: {backend}")

    return TFLiteClassifier(
        model_path=model_path,
        labels_path=config.get('ai.labels_path'),
        use_edge_tpu=config.get('ai.use_edge_tpu', False),
        input_mean=config.get('ai.input_mean', 127.5),
        input_std=config.get('ai.input_std', 127.5)
    )
