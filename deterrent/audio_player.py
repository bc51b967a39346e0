# ============================================================
# FILE: deterrent/audio_player.py
# ============================================================

import random
import subprocess
import threading
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

class AudioPlayer:
    """Plays a random alarm clip from sound_path through ALSA (aplay)."""
    
    def __init__(self, sound_path: str, volume: int = 80, enabled: bool = True):
        self.sound_path = Path(sound_path)
        self.volume = volume
        self.enabled = enabled
        self.sound_files = []
        self._playing = threading.Lock()
        if self.enabled:
            self._load_sound_files()
    
    def _load_sound_files(self):
        if not self.sound_path.exists():
            logger.warning(f"Sound directory not found: {self.sound_path}")
            return
        
        self.sound_files = sorted(self.sound_path.glob('*.wav'))
        logger.info(f"Loaded {len(self.sound_files)} sound files")
    
    def play_random_async(self) -> bool:
        """Start playback on a daemon thread; skipped while a clip is already playing."""
        if not self.enabled or not self.sound_files:
            return False
        if not self._playing.acquire(blocking=False):
            logger.debug("Alarm sound already playing")
            return False
        
        def run():
            try:
                self.play_random()
            finally:
                self._playing.release()
        
        threading.Thread(target=run, name="alarm-sound", daemon=True).start()
        return True
    
    def play_random(self):
        if not self.sound_files:
            logger.warning("No sound files available")
            return
        
        self.play(random.choice(self.sound_files))
    
    def play(self, sound_file: Path):
        try:
            logger.info(f"Playing alarm sound: {sound_file.name}")
            
            volume_percent = min(100, max(0, self.volume))
            subprocess.run(
                ['amixer', 'set', 'Master', f'{volume_percent}%'],
                capture_output=True,
                check=False
            )
            subprocess.run(
                ['aplay', str(sound_file)],
                capture_output=True,
                check=True
            )
            
            logger.info("Sound played successfully")
            
        except FileNotFoundError:
            logger.error("aplay not found. Install alsa-utils")
        except Exception as e:
            logger.error(f"Failed to play sound: {e}")
