import pytest

from ai.classifier import SimulatedClassifier
from main import LeopardGuardSystem
from tests.fakes import FakeCamera

CONFIG = """
pipeline:
  settle_delay: 0
  step_timeout: 2.0
  threat_classes: [leopard]
ai:
  backend: simulated
  simulated:
    threat_probability: 1.0
    seed: 3
serial:
  port: "loop://"
audio:
  enabled: false
mqtt:
  enabled: false
"""


@pytest.fixture
def system(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text(CONFIG)
    guard = LeopardGuardSystem(str(path), install_signal_handlers=False)
    yield guard
    guard.connection.disconnect()


def test_components_are_wired(system):
    assert isinstance(system.classifier, SimulatedClassifier)
    assert system.classifier.threat_labels == ['leopard']
    assert system.connection.on_line == system.pipeline.on_external_signal
    assert system.pipeline.settle_delay == 0
    assert system.event_log.messages() == ['System initializing...']


def test_trigger_before_model_load_is_ignored(system):
    system.pipeline.capture_source = FakeCamera()

    assert system.pipeline.on_manual_test() is False


def test_end_to_end_without_serial_device(system):
    system.pipeline.capture_source = FakeCamera()
    system.load_model()

    assert system.pipeline.on_manual_test() is True
    assert system.pipeline.wait(timeout=5)

    messages = system.event_log.messages()
    assert 'System ready. Waiting for input.' in messages
    assert any(m.startswith('THREAT DETECTED: leopard') for m in messages)
    assert messages[-1] == 'Cannot send: Port not ready'


def test_end_to_end_over_loopback(system):
    system.pipeline.capture_source = FakeCamera()
    system.load_model()
    system.connect_serial()

    assert system.connection.is_connected
    assert system.pipeline.on_manual_test() is True
    assert system.pipeline.wait(timeout=5)

    assert system.event_log.messages()[-1] == 'Sending command -> ALARM_ON'
