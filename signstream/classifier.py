"""
Classification adapter around the external sequence classifier.
"""
import logging
from typing import List, Optional, Sequence

import numpy as np

from .errors import ClassifierError, ModelLoadError
from .types import ClassificationResult, ClassifierProto
from .window import TemporalWindow

logger = logging.getLogger(__name__)


class ClassificationAdapter:
    """
    Runs the classifier on a full window and reduces its output to the
    single most likely label.
    """

    def __init__(self, classifier: ClassifierProto, labels: Sequence[str]):
        if not labels:
            raise ValueError("labels must not be empty")
        self.classifier = classifier
        self.labels: List[str] = list(labels)

    def predict(self, window: TemporalWindow) -> Optional[ClassificationResult]:
        """
        Classify the current window.

        Args:
            window: Sliding window of smoothed feature vectors

        Returns:
            Best label and confidence, or None if the window is not full or
            the classifier is not ready

        Raises:
            ClassifierError: if the classifier call fails or returns a
                malformed distribution
        """
        if not window.is_full() or not self.classifier.ready:
            return None

        batch = window.as_batch()
        try:
            raw = self.classifier.predict(batch)
        except ClassifierError:
            raise
        except Exception as e:
            logger.error(f"Classifier call failed: {e}")
            raise ClassifierError(f"Classifier call failed: {e}") from e

        probs = self._distribution(raw)
        best = int(np.argmax(probs))
        return ClassificationResult(
            label=self.labels[best],
            confidence=float(probs[best]),
            probabilities=probs,
        )

    def _distribution(self, raw) -> np.ndarray:
        probs = np.asarray(raw, dtype=np.float64)
        if probs.ndim == 2 and probs.shape[0] == 1:
            probs = probs[0]
        if probs.ndim != 1 or probs.shape[0] != len(self.labels):
            raise ClassifierError(
                f"Expected {len(self.labels)} class probabilities, got shape {np.shape(raw)}")
        if not np.all(np.isfinite(probs)):
            raise ClassifierError("Classifier returned non-finite probabilities")
        return probs


class KerasSequenceClassifier:
    """Sequence classifier backed by a saved TensorFlow Keras model."""

    def __init__(self):
        self.model = None

    @property
    def ready(self) -> bool:
        return self.model is not None

    def initialize(self, model_location: str) -> None:
        """
        Load the Keras model.

        Args:
            model_location: Path to a .keras / .h5 model file or SavedModel directory

        Raises:
            ModelLoadError: if TensorFlow or the model cannot be loaded
        """
        if self.ready:
            return
        try:
            import tensorflow as tf
            self.model = tf.keras.models.load_model(model_location, compile=False)
        except Exception as e:
            logger.error(f"Model load error: {e}")
            raise ModelLoadError(f"Failed to load model from {model_location}: {e}") from e
        logger.info(f"✅ Loaded sequence classifier from {model_location}")

    def predict(self, batch: np.ndarray) -> np.ndarray:
        """Return class probabilities for a (1, T, F) batch."""
        if self.model is None:
            raise ClassifierError("Classifier not initialized")
        probs = self.model.predict(batch, verbose=0)
        return np.asarray(probs)[0]
