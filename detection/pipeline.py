# ============================================================
# FILE: detection/pipeline.py
# ============================================================

import logging
import math
import queue
import threading
import time
from typing import Callable, List, Optional, Tuple

from detection.event_log import EventLog
from detection.models import (
    ActuatorCommand, DetectionEvent, PipelineState, ThreatClassSet
)
from utils.exceptions import (
    CaptureError, ClassifyError, LeopardGuardError, StepTimeoutError
)

logger = logging.getLogger(__name__)

DetectionListener = Callable[[DetectionEvent], None]

class DetectionPipeline:
    """
    Trigger -> capture -> classify -> decide -> act cycle.

    Only one cycle runs at a time. A trigger is accepted only while the
    pipeline is IDLE and the classifier is ready; anything else is dropped
    without touching the state or the event log. The accepted cycle runs on a
    daemon worker thread and always ends back in IDLE.
    """

    def __init__(self, capture_source, classifier, connection,
                 threat_classes: Optional[ThreatClassSet] = None,
                 event_log: Optional[EventLog] = None,
                 settle_delay: float = 0.5,
                 step_timeout: Optional[float] = 10.0,
                 cooldown_seconds: float = 0.0):
        self.capture_source = capture_source
        self.classifier = classifier
        self.connection = connection
        self.threat_classes = threat_classes if threat_classes is not None else ThreatClassSet()
        self.event_log = event_log if event_log is not None else EventLog()
        self.settle_delay = settle_delay
        self.step_timeout = step_timeout
        self.cooldown_seconds = cooldown_seconds

        self.last_event: Optional[DetectionEvent] = None
        self._state = PipelineState.IDLE
        self._state_lock = threading.Lock()
        self._listeners: List[DetectionListener] = []
        self._worker: Optional[threading.Thread] = None

    @property
    def state(self) -> PipelineState:
        with self._state_lock:
            return self._state

    def add_listener(self, listener: DetectionListener):
        self._listeners.append(listener)

    def trigger(self) -> bool:
        with self._state_lock:
            if self._state is not PipelineState.IDLE:
                return False
            if not self.classifier.is_ready():
                return False
            self._state = PipelineState.CAPTURING

        self.event_log.add("Triggered: Analyzing camera feed...")
        self._worker = threading.Thread(
            target=self._run_cycle, name="detection-cycle", daemon=True
        )
        self._worker.start()
        return True

    def on_external_signal(self, line: str) -> bool:
        self.event_log.add(f'Signal received: "{line}"')
        return self.trigger()

    def on_manual_test(self) -> bool:
        return self.trigger()

    def current_status(self) -> dict:
        event = self.last_event
        return {
            'state': self.state.value,
            'last_prediction': event.label if event else None,
            'last_confidence': event.confidence if event else None
        }

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the running cycle (if any) finishes."""
        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()

    def _set_state(self, state: PipelineState):
        with self._state_lock:
            self._state = state
        logger.debug(f"Pipeline state -> {state.value}")

    def _run_cycle(self):
        try:
            if self.settle_delay > 0:
                time.sleep(self.settle_delay)

            try:
                image = self._run_step(self.capture_source.capture_still, CaptureError)
            except (CaptureError, StepTimeoutError) as e:
                self.event_log.add(f"Capture failed: {e}")
                return

            self._set_state(PipelineState.CLASSIFYING)
            try:
                label, confidence = self._interpret(
                    self._run_step(self.classifier.classify, ClassifyError, image)
                )
            except (ClassifyError, StepTimeoutError) as e:
                self.event_log.add(f"Classification failed: {e}")
                return

            self._set_state(PipelineState.DECIDING)
            self._decide(label, confidence)

            self._set_state(PipelineState.COOLDOWN)
            if self.cooldown_seconds > 0:
                time.sleep(self.cooldown_seconds)
        except Exception as e:
            logger.error(f"Error in detection cycle: {e}")
            self.event_log.add(f"Analysis error: {e}")
        finally:
            self._set_state(PipelineState.IDLE)

    def _run_step(self, step, error_type, *args):
        """
        Run an external step with a deadline.

        The step executes on its own daemon thread; if it does not finish in
        time it is abandoned and StepTimeoutError is raised. Any exception that
        is not already a LeopardGuardError is wrapped in error_type.
        """
        results: queue.Queue = queue.Queue(maxsize=1)

        def runner():
            try:
                results.put((True, step(*args)))
            except Exception as e:
                results.put((False, e))

        threading.Thread(target=runner, name="detection-step", daemon=True).start()
        try:
            ok, value = results.get(timeout=self.step_timeout)
        except queue.Empty:
            raise StepTimeoutError(f"timed out after {self.step_timeout}s")

        if ok:
            return value
        if isinstance(value, LeopardGuardError):
            raise value
        raise error_type(str(value), cause=value)

    def _interpret(self, result) -> Tuple[str, float]:
        try:
            label, confidence = result
            confidence = float(confidence)
        except (TypeError, ValueError) as e:
            raise ClassifyError(f"Invalid classifier result: {result!r}", cause=e)

        if not math.isfinite(confidence):
            raise ClassifyError(f"Invalid confidence: {confidence}")
        return str(label), min(1.0, max(0.0, confidence))

    def _decide(self, label: str, confidence: float) -> DetectionEvent:
        event = DetectionEvent(
            label=label,
            confidence=confidence,
            is_threat=label in self.threat_classes
        )
        self.last_event = event
        self._notify(event)

        if event.is_threat:
            self.event_log.add(f"THREAT DETECTED: {label} ({event.percent}%)")
            self.connection.send(ActuatorCommand.ALARM_ON)
        else:
            self.event_log.add(f"Scan Result: {label} - No threat")

        return event

    def _notify(self, event: DetectionEvent):
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Detection listener failed: {e}")
