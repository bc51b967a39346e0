# ============================================================
# FILE: ui/app.py
# ============================================================

from flask import Flask, render_template, jsonify, Response
import logging

from detection.models import ActuatorCommand
from utils.exceptions import CaptureError, DeviceConnectionError

logger = logging.getLogger(__name__)

app = Flask(__name__)
system = None  # Will be set when starting the UI

def init_app(guard_system):
    global system
    system = guard_system
    return app

@app.route('/')
def index():
    return render_template('index.html')

@app.route('/api/live-stream')
def live_stream():
    def generate():
        while system and system.camera.is_ready():
            frame = system.camera.read()
            if frame is None:
                continue
            try:
                frame_bytes = system.camera.encode_jpeg(frame)
            except CaptureError as e:
                logger.error(f"Live stream encode failed: {e}")
                continue
            yield (b'--frame\r\n'
                   b'Content-Type: image/jpeg\r\n\r\n' + frame_bytes + b'\r\n')
    
    return Response(generate(), mimetype='multipart/x-mixed-replace; boundary=frame')

@app.route('/api/status')
def get_status():
    if not system:
        return jsonify({'status': 'offline'})
    
    try:
        status = system.pipeline.current_status()
        status.update({
            'connection': system.connection.status_text,
            'connected': system.connection.is_connected,
            'camera_connected': system.camera.is_ready(),
            'model_loaded': system.classifier.is_ready()
        })
        return jsonify(status)
    except Exception as e:
        logger.error(f"Error getting system status: {e}")
        return jsonify({'status': 'error', 'error': str(e)}), 500

@app.route('/api/logs')
def get_logs():
    if not system:
        return jsonify([])
    return jsonify([entry.to_dict() for entry in system.event_log.entries()])

@app.route('/api/logs/clear', methods=['POST'])
def clear_logs():
    if not system:
        return jsonify({'success': False, 'error': 'System not initialized'})
    system.event_log.clear()
    return jsonify({'success': True})

@app.route('/api/connect', methods=['POST'])
def connect_device():
    if not system:
        return jsonify({'success': False, 'error': 'System not initialized'})
    
    try:
        device = system.connection.connect()
        return jsonify({'success': True, 'device': device})
    except DeviceConnectionError as e:
        logger.warning(f"Connect failed: {e}")
        return jsonify({'success': False, 'error': str(e)}), 409

@app.route('/api/trigger', methods=['POST'])
def manual_trigger():
    if not system:
        return jsonify({'success': False, 'error': 'System not initialized'})
    
    accepted = system.pipeline.on_manual_test()
    return jsonify({'success': True, 'accepted': accepted})

@app.route('/api/silence', methods=['POST'])
def silence_alarm():
    if not system:
        return jsonify({'success': False, 'error': 'System not initialized'})
    
    sent = system.connection.send(ActuatorCommand.ALARM_OFF)
    return jsonify({'success': sent})

SECRET_KEYS = ('token', 'password', 'secret', 'sid')

def _redact(value):
    if isinstance(value, dict):
        return {
            key: '***' if any(s in str(key).lower() for s in SECRET_KEYS) and item else _redact(item)
            for key, item in value.items()
        }
    return value

@app.route('/api/config')
def get_config():
    if not system:
        return jsonify({'success': False, 'error': 'System not initialized'})
    return jsonify(_redact(system.config.config))

def start_web_ui(guard_system, host='0.0.0.0', port=5000):
    init_app(guard_system)
    logger.info(f"Starting web UI on {host}:{port}")
    app.run(host=host, port=port, debug=False, threaded=True)
