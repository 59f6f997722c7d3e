"""
Recurrent Category Classifier

Predicts a spending category from a free-text transaction description.

ARCHITECTURE:
    Input(20) → Embedding(max(vocab + 1, 100), 32) → LSTM(64)
    → Dense(32, relu) → Dropout(0.3) → Dense(n_categories, softmax)

DESIGN DECISION: Training always builds a fresh network and swaps it in
only after fitting completes. A prediction issued while a run is in
progress uses the previous network (or fails over to "untrained").

PERSISTENCE:
- `rnnModel`: {"topology": <keras json>, "weights": [...], "categories": [...]}
- `wordIndex`: {word: id}
"""

import threading
from typing import Optional, Sequence

import keras
import numpy as np
import structlog
from pydantic import BaseModel, Field

from budget_tracker.classifier.text import PAD_INDEX, Vocabulary, pad_sequences
from budget_tracker.config import ClassifierSettings, get_settings
from budget_tracker.models.finance import DEFAULT_CATEGORIES
from budget_tracker.services.storage import MODEL_KEY, WORD_INDEX_KEY, KeyValueStore


logger = structlog.get_logger(__name__)


class ClassifierError(Exception):
    """Base exception for classifier operations."""
    pass


class InsufficientDataError(ClassifierError):
    """Fewer labelled samples than training requires."""

    def __init__(self, sample_count: int, required: int):
        self.sample_count = sample_count
        self.required = required
        super().__init__(f"Need at least {required} transactions to train the model")


class ModelNotTrainedError(ClassifierError):
    """Prediction requested before any network was trained or restored."""
    pass


class TrainingSummary(BaseModel):
    """Outcome of one training run."""
    sample_count: int = Field(..., ge=0)
    vocabulary_size: int = Field(..., ge=0)
    epochs: int = Field(..., ge=0)
    final_loss: Optional[float] = None
    final_accuracy: Optional[float] = None


class TransactionClassifier:
    """
    Keras LSTM classifier over transaction descriptions.

    Args:
        categories: Output classes, in softmax order
        settings: Network and training hyperparameters
    """

    def __init__(
        self,
        categories: Optional[Sequence[str]] = None,
        settings: Optional[ClassifierSettings] = None,
    ):
        self._settings = settings or get_settings().classifier
        self._categories = list(categories or DEFAULT_CATEGORIES)
        self._vocabulary = Vocabulary()
        self._model: Optional[keras.Model] = None
        self._input_dim = self._settings.min_vocabulary_size
        self._lock = threading.Lock()

    @property
    def categories(self) -> list[str]:
        return list(self._categories)

    @property
    def vocabulary(self) -> Vocabulary:
        return self._vocabulary

    @property
    def is_trained(self) -> bool:
        return self._model is not None

    # -------------------------------------------------------------------------
    # Network
    # -------------------------------------------------------------------------

    def embedding_input_dim(self, vocabulary_size: int) -> int:
        return max(vocabulary_size + 1, self._settings.min_vocabulary_size)

    def build_model(self, vocabulary_size: int) -> keras.Model:
        """Build and compile an untrained network sized for the vocabulary."""
        s = self._settings
        model = keras.Sequential([
            keras.Input(shape=(s.max_sequence_length,)),
            keras.layers.Embedding(self.embedding_input_dim(vocabulary_size), s.embedding_dim),
            keras.layers.LSTM(s.lstm_units),
            keras.layers.Dense(s.dense_units, activation="relu"),
            keras.layers.Dropout(s.dropout_rate),
            keras.layers.Dense(len(self._categories), activation="softmax"),
        ])
        model.compile(
            optimizer=keras.optimizers.Adam(),
            loss="categorical_crossentropy",
            metrics=["accuracy"],
        )
        return model

    def _encode(self, texts: Sequence[str], input_dim: int) -> np.ndarray:
        with self._lock:
            sequences = self._vocabulary.encode_all(texts)
        # Words added after the embedding table was sized have no row
        sequences = [
            [idx if idx < input_dim else PAD_INDEX for idx in seq]
            for seq in sequences
        ]
        return np.array(
            pad_sequences(sequences, self._settings.max_sequence_length),
            dtype="int32",
        )

    # -------------------------------------------------------------------------
    # Training
    # -------------------------------------------------------------------------

    def train(self, samples: Sequence[tuple[str, str]]) -> TrainingSummary:
        """
        Fit a fresh network on (description, category) pairs.

        Raises:
            InsufficientDataError: Fewer samples than `min_training_samples`
            ClassifierError: A label is not one of the output classes
        """
        s = self._settings
        if len(samples) < s.min_training_samples:
            raise InsufficientDataError(len(samples), s.min_training_samples)

        unknown = sorted({label for _, label in samples if label not in self._categories})
        if unknown:
            raise ClassifierError(f"Unknown categories in training data: {', '.join(unknown)}")

        descriptions = [description for description, _ in samples]
        with self._lock:
            self._vocabulary.encode_all(descriptions)
            vocabulary_size = len(self._vocabulary)
            max_index = self._vocabulary.max_index
        input_dim = self.embedding_input_dim(max_index)

        x = self._encode(descriptions, input_dim)
        y = keras.utils.to_categorical(
            [self._categories.index(label) for _, label in samples],
            num_classes=len(self._categories),
        )

        n = len(samples)
        validation_split = s.validation_split if 0 < int(n * (1 - s.validation_split)) < n else 0.0

        def log_epoch(epoch: int, logs: Optional[dict]) -> None:
            logs = logs or {}
            logger.info(
                "classifier_epoch",
                epoch=epoch + 1,
                loss=float(logs.get("loss", 0.0)),
                accuracy=float(logs.get("accuracy", 0.0)),
            )

        model = self.build_model(max_index)
        history = model.fit(
            x,
            y,
            epochs=s.epochs,
            batch_size=s.batch_size,
            validation_split=validation_split,
            shuffle=True,
            verbose=0,
            callbacks=[keras.callbacks.LambdaCallback(on_epoch_end=log_epoch)],
        )

        with self._lock:
            self._model = model
            self._input_dim = input_dim

        losses = history.history.get("loss") or [None]
        accuracies = history.history.get("accuracy") or [None]
        return TrainingSummary(
            sample_count=n,
            vocabulary_size=vocabulary_size,
            epochs=s.epochs,
            final_loss=losses[-1],
            final_accuracy=accuracies[-1],
        )

    # -------------------------------------------------------------------------
    # Inference
    # -------------------------------------------------------------------------

    def predict_category(self, description: str) -> str:
        """
        Most likely category for a description.

        Raises:
            ModelNotTrainedError: No network has been trained or restored
        """
        with self._lock:
            model, input_dim = self._model, self._input_dim
        if model is None:
            raise ModelNotTrainedError("Model not trained yet")

        x = self._encode([description], input_dim)
        probabilities = model.predict(x, verbose=0)[0]
        return self._categories[int(np.argmax(probabilities))]

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self, store: KeyValueStore) -> bool:
        """Persist topology, weights and vocabulary. Returns False on failure."""
        with self._lock:
            model = self._model
            word_index = self._vocabulary.word_index
        if model is None:
            raise ModelNotTrainedError("Model not trained yet")

        payload = {
            "topology": model.to_json(),
            "weights": [w.tolist() for w in model.get_weights()],
            "categories": self._categories,
        }
        return store.save_json(MODEL_KEY, payload) and store.save_json(WORD_INDEX_KEY, word_index)

    def load(self, store: KeyValueStore) -> bool:
        """
        Restore a previously saved network.

        Returns False when nothing is stored or the stored data cannot be
        rebuilt. Never raises.
        """
        payload = store.load_json(MODEL_KEY)
        word_index = store.load_json(WORD_INDEX_KEY)
        if not isinstance(payload, dict) or not isinstance(word_index, dict):
            return False

        try:
            model = keras.models.model_from_json(payload["topology"])
            model.set_weights([np.asarray(w, dtype="float32") for w in payload["weights"]])
            categories = list(payload.get("categories") or self._categories)
            vocabulary = Vocabulary.from_json(word_index)
            input_dim = int(model.layers[0].input_dim)
        except Exception as e:
            logger.warning("classifier_restore_failed", error=str(e))
            return False

        with self._lock:
            self._model = model
            self._categories = categories
            self._vocabulary = vocabulary
            self._input_dim = input_dim

        logger.info("classifier_restored", vocabulary_size=len(vocabulary))
        return True
