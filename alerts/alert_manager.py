# ============================================================
# FILE: alerts/alert_manager.py
# ============================================================

import logging
import threading
from datetime import datetime, timedelta
from typing import Optional
from twilio.rest import Client as TwilioClient
from twilio.base.exceptions import TwilioRestException

from detection.models import DetectionEvent

logger = logging.getLogger(__name__)

class AlertManager:
    """Fans detection events out to the alarm sound, MQTT and SMS."""
    
    def __init__(self, config, mqtt_client, audio_player=None, twilio_client=None):
        self.config = config
        self.mqtt_client = mqtt_client
        self.audio_player = audio_player
        self.twilio_client = twilio_client
        self.last_sms_time: Optional[datetime] = None
        self._sms_lock = threading.Lock()
        
        self.sms_enabled = config.get('alert.sms_enabled', False)
        self.sms_throttle_minutes = config.get('alert.sms_throttle_minutes', 15)
        self.from_number = config.get('alert.twilio_from_number')
        self.to_number = config.get('alert.twilio_to_number')
        
        if self.sms_enabled and self.twilio_client is None:
            account_sid = config.get('alert.twilio_account_sid')
            auth_token = config.get('alert.twilio_auth_token')
            
            if account_sid and auth_token:
                try:
                    self.twilio_client = TwilioClient(account_sid, auth_token)
                    logger.info("Twilio SMS client initialized")
                except Exception as e:
                    logger.error(f"Failed to initialize Twilio: {e}")
                    self.sms_enabled = False
            else:
                logger.warning("Twilio credentials not configured, SMS disabled")
                self.sms_enabled = False
    
    def handle_detection(self, event: DetectionEvent):
        self.mqtt_client.publish('detection', event.to_dict())
        
        if not event.is_threat:
            return
        
        message = f"THREAT: {event.label} detected (confidence: {event.confidence:.2f})"
        logger.warning(message)
        
        if self.audio_player is not None:
            self.audio_player.play_random_async()
        
        self.mqtt_client.publish('alert', {
            'type': 'CRITICAL',
            'label': event.label,
            'confidence': event.confidence,
            'timestamp': event.timestamp.isoformat()
        })
        
        if self.sms_enabled:
            self._send_sms(message)
    
    def _sms_throttled(self, now: datetime) -> bool:
        if self.last_sms_time is None:
            return False
        return now - self.last_sms_time < timedelta(minutes=self.sms_throttle_minutes)
    
    def _send_sms(self, message: str) -> bool:
        with self._sms_lock:
            now = datetime.now()
            if self._sms_throttled(now):
                logger.info("SMS throttled")
                return False
            self.last_sms_time = now
        
        try:
            self.twilio_client.messages.create(
                body=message,
                from_=self.from_number,
                to=self.to_number
            )
            logger.info(f"SMS sent successfully to {self.to_number}")
            return True
        except TwilioRestException as e:
            logger.error(f"Failed to send SMS: {e}")
        except Exception as e:
            logger.error(f"SMS error: {e}")
        return False
