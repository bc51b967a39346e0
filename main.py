# ============================================================
# FILE: main.py
# ============================================================

import logging
import os
import time
import threading
from datetime import datetime
import signal
import sys

from utils.config_loader import Config
from utils.exceptions import CaptureError, ClassifyError, DeviceConnectionError
from capture.camera import Camera
from ai.classifier import create_classifier
from detection.event_log import EventLog
from detection.models import ThreatClassSet, DEFAULT_THREAT_CLASSES
from detection.pipeline import DetectionPipeline
from deterrent.audio_player import AudioPlayer
from deterrent.connection_manager import ConnectionManager
from deterrent.serial_link import SerialLink
from alerts.mqtt_client import MQTTClient
from alerts.alert_manager import AlertManager

logger = logging.getLogger(__name__)

def setup_logging(log_file: str = 'leopard_guard.log'):
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

class LeopardGuardSystem:
    def __init__(self, config_path: str = "config.yaml", install_signal_handlers: bool = True):
        logger.info("Initializing LeopardGuard...")

        self.config = Config(config_path)
        self.running = False
        self.event_log = EventLog('System initializing...')

        self._initialize_components()

        if install_signal_handlers:
            signal.signal(signal.SIGINT, self._signal_handler)
            signal.signal(signal.SIGTERM, self._signal_handler)

        logger.info("System initialization complete")

    def _initialize_components(self):
        # Camera
        device_id = self.config.get('camera.device_id', 0)
        resolution = (
            self.config.get('camera.resolution.width', 640),
            self.config.get('camera.resolution.height', 480)
        )
        self.camera = Camera(device_id, resolution, self.config.get('camera.jpeg_quality', 90))

        # Classifier
        self.classifier = create_classifier(self.config)

        # Serial link
        self.connection = ConnectionManager(
            self.event_log,
            link=SerialLink(baud_rate=self.config.get('serial.baud_rate', 9600)),
            port=self.config.get('serial.port')
        )

        # Pipeline
        threat_classes = ThreatClassSet(
            self.config.get('pipeline.threat_classes', DEFAULT_THREAT_CLASSES)
        )
        self.pipeline = DetectionPipeline(
            self.camera,
            self.classifier,
            self.connection,
            threat_classes=threat_classes,
            event_log=self.event_log,
            settle_delay=self.config.get('pipeline.settle_delay', 0.5),
            step_timeout=self.config.get('pipeline.step_timeout', 10.0),
            cooldown_seconds=self.config.get('pipeline.cooldown_seconds', 0.0)
        )
        self.connection.on_line = self.pipeline.on_external_signal

        # Audio
        self.audio_player = AudioPlayer(
            self.config.get('audio.sound_path', './sounds/'),
            self.config.get('audio.volume', 80),
            self.config.get('audio.enabled', True)
        )

        # MQTT
        mqtt_enabled = self.config.get('mqtt.enabled', False)
        mqtt_broker = self.config.get('mqtt.broker', 'localhost')
        mqtt_port = self.config.get('mqtt.port', 1883)
        mqtt_topics = self.config.get('mqtt.topics', {})
        self.mqtt_client = MQTTClient(mqtt_broker, mqtt_port, mqtt_topics, mqtt_enabled)

        # Alert manager
        self.alert_manager = AlertManager(self.config, self.mqtt_client, self.audio_player)
        self.pipeline.add_listener(self.alert_manager.handle_detection)

    def _signal_handler(self, sig, frame):
        logger.info("Shutdown signal received")
        self.stop()
        sys.exit(0)

    def initialize_camera(self):
        try:
            self.camera.initialize()
            self.event_log.add('Camera initialized successfully')
        except CaptureError as e:
            self.event_log.add(f'Camera initialization failed: {e}')

    def load_model(self):
        try:
            self.classifier.load()
            self.event_log.add('AI Model loaded successfully')
            self.event_log.add('System ready. Waiting for input.')
        except ClassifyError as e:
            self.event_log.add(f'Model loading failed: {e}')

    def connect_serial(self):
        try:
            device = self.connection.connect()
            logger.info(f"Deterrent controller connected on {device}")
        except DeviceConnectionError as e:
            logger.warning(f"Deterrent controller not connected: {e}")

    def monitor_system_health(self):
        logger.info("Starting system health monitor...")
        interval = self.config.get('system.health_check_seconds', 30)

        while self.running:
            try:
                if not self.camera.is_connected():
                    logger.warning("Camera disconnected, attempting restart...")
                    self.camera.restart()
                    self.event_log.add('Camera reconnected')

                self.mqtt_client.publish('status', {
                    'status': 'healthy',
                    'pipeline': self.pipeline.current_status(),
                    'connected': self.connection.is_connected,
                    'timestamp': datetime.now().isoformat()
                })

            except Exception as e:
                logger.error(f"Error in health monitor: {e}")

            time.sleep(interval)

    def start(self):
        logger.info("Starting LeopardGuard...")
        self.running = True

        self.initialize_camera()
        threading.Thread(target=self.load_model, daemon=True).start()

        if self.config.get('serial.auto_connect', False):
            self.connect_serial()

        health_thread = threading.Thread(target=self.monitor_system_health, daemon=True)
        health_thread.start()

        logger.info("System started successfully")

        # Keep main thread alive
        try:
            while self.running:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self):
        logger.info("Stopping system...")
        self.running = False

        self.pipeline.wait(timeout=5)
        self.connection.disconnect()
        self.camera.release()
        self.mqtt_client.disconnect()

        logger.info("System stopped")

def main():
    setup_logging()
    system = LeopardGuardSystem(os.getenv('LEOPARD_GUARD_CONFIG', 'config.yaml'))

    start_ui = system.config.get('ui.enabled', False) or \
        os.getenv('START_WEB_UI', 'false').lower() == 'true'
    if start_ui:
        from ui.app import start_web_ui
        threading.Thread(
            target=start_web_ui,
            args=(system,),
            kwargs={
                'host': system.config.get('ui.host', '0.0.0.0'),
                'port': system.config.get('ui.port', 5000)
            },
            daemon=True
        ).start()

    system.start()

if __name__ == "__main__":
    main()
