from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from alerts.alert_manager import AlertManager
from detection.models import DetectionEvent


class FakeMQTT:
    def __init__(self):
        self.published = []

    def publish(self, topic_key, payload):
        self.published.append((topic_key, payload))


class FakeAudio:
    def __init__(self):
        self.plays = 0

    def play_random_async(self):
        self.plays += 1
        return True


class FakeTwilio:
    def __init__(self):
        self.sent = []
        self.messages = SimpleNamespace(create=lambda **kwargs: self.sent.append(kwargs))


def config_from(values):
    return SimpleNamespace(get=lambda key, default=None: values.get(key, default))


@pytest.fixture
def mqtt():
    return FakeMQTT()


@pytest.fixture
def audio():
    return FakeAudio()


def test_threat_plays_sound_and_publishes_alert(mqtt, audio):
    manager = AlertManager(config_from({}), mqtt, audio)

    manager.handle_detection(DetectionEvent('leopard', 0.9, True))

    assert audio.plays == 1
    assert [topic for topic, _ in mqtt.published] == ['detection', 'alert']
    assert mqtt.published[1][1]['label'] == 'leopard'


def test_non_threat_only_publishes_detection(mqtt, audio):
    manager = AlertManager(config_from({}), mqtt, audio)

    manager.handle_detection(DetectionEvent('background', 0.6, False))

    assert audio.plays == 0
    assert [topic for topic, _ in mqtt.published] == ['detection']


def test_sms_is_throttled(mqtt, audio):
    twilio = FakeTwilio()
    config = config_from({
        'alert.sms_enabled': True,
        'alert.sms_throttle_minutes': 15,
        'alert.twilio_from_number': '+100',
        'alert.twilio_to_number': '+200',
    })
    manager = AlertManager(config, mqtt, audio, twilio_client=twilio)
    event = DetectionEvent('tiger', 0.8, True)

    manager.handle_detection(event)
    manager.handle_detection(event)
    assert len(twilio.sent) == 1
    assert twilio.sent[0]['to'] == '+200'

    manager.last_sms_time = datetime.now() - timedelta(minutes=16)
    manager.handle_detection(event)
    assert len(twilio.sent) == 2


def test_sms_disabled_without_credentials(mqtt):
    manager = AlertManager(config_from({'alert.sms_enabled': True}), mqtt)

    assert manager.sms_enabled is False
    manager.handle_detection(DetectionEvent('lion', 0.95, True))
