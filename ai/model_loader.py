# ============================================================
# FILE: ai/model_loader.py
# ============================================================

import logging
from pathlib import Path
from typing import List, Optional

from utils.exceptions import ClassifyError

logger = logging.getLogger(__name__)

def _interpreter_class():
    try:
        from tflite_runtime.interpreter import Interpreter
    except ImportError:
        import tensorflow as tf
        Interpreter = tf.lite.Interpreter
    return Interpreter

def load_labels(labels_path: Optional[str]) -> List[str]:
    """Read one label per line; an optional leading index ("3 leopard") is dropped."""
    if not labels_path:
        return []
    
    path = Path(labels_path)
    if not path.exists():
        raise ClassifyError(f"Labels file not found: {path}")
    
    labels = []
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            index, _, rest = line.partition(' ')
            labels.append(rest.strip() if index.isdigit() and rest else line)
    
    logger.info(f"Loaded {len(labels)} labels from {path}")
    return labels

class ModelLoader:
    def __init__(self, model_path: str, use_edge_tpu: bool = False):
        self.model_path = Path(model_path)
        self.use_edge_tpu = use_edge_tpu
        self.interpreter = None
        self.input_details = None
        self.output_details = None
        self._load_model()
    
    def _load_model(self):
        if not self.model_path.exists():
            raise ClassifyError(f"Model not found: {self.model_path}")
        
        try:
            if self.use_edge_tpu:
                try:
                    from tflite_runtime.interpreter import Interpreter
                    from tflite_runtime.interpreter import load_delegate
                    
                    self.interpreter = Interpreter(
                        model_path=str(self.model_path),
                        experimental_delegates=[load_delegate('libedgetpu.so.1')]
                    )
                    logger.info("Model loaded with Edge TPU acceleration")
                except Exception as e:
                    logger.warning(f"Edge TPU not available, falling back to CPU: {e}")
                    self.use_edge_tpu = False
            
            if not self.use_edge_tpu:
                Interpreter = _interpreter_class()
                self.interpreter = Interpreter(model_path=str(self.model_path))
                logger.info("Model loaded on CPU")
            
            self.interpreter.allocate_tensors()
            self.input_details = self.interpreter.get_input_details()
            self.output_details = self.interpreter.get_output_details()
            
            logger.info(f"Model input shape: {self.input_details[0]['shape']}")
            
        except Exception as e:
            logger.error(f"Failed to load model: {e}")
            raise ClassifyError(f"Failed to load model {self.model_path}: {e}", cause=e)
    
    def get_interpreter(self):
        return self.interpreter
    
    def get_input_details(self):
        return self.input_details
    
    def get_output_details(self):
        return self.output_details
