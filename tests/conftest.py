import pytest

from detection.event_log import EventLog
from detection.models import ThreatClassSet
from detection.pipeline import DetectionPipeline
from tests.fakes import FakeCamera, FakeClassifier, FakeConnection
from utils.exceptions import CaptureError


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def camera():
    return FakeCamera()


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def connection():
    return FakeConnection()


@pytest.fixture
def make_pipeline(camera, classifier, connection, event_log):
    def factory(**kwargs):
        options = dict(
            capture_source=camera,
            classifier=classifier,
            connection=connection,
            threat_classes=ThreatClassSet(),
            event_log=event_log,
            settle_delay=0,
            step_timeout=2.0,
        )
        options.update(kwargs)
        return DetectionPipeline(**options)
    return factory


@pytest.fixture
def failing_camera():
    return FakeCamera(error=CaptureError("Camera not initialized"))
