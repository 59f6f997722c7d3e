"""
Tests for the category classifier.

Networks here are real (tiny) Keras models trained for a couple of
epochs; assertions check behaviour, not accuracy.
"""

import threading
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from budget_tracker.classifier import (
    PAD_INDEX,
    CategoryService,
    InsufficientDataError,
    ModelNotTrainedError,
    TrainingSummary,
    TransactionClassifier,
    Vocabulary,
    pad_sequences,
    tokenize,
)
from budget_tracker.config import ClassifierSettings
from budget_tracker.models import (
    DEFAULT_CATEGORIES,
    AuditEventType,
    FinancialData,
    TransactionDraft,
)
from budget_tracker.services.storage import (
    FINANCIAL_DATA_KEY,
    MODEL_KEY,
    WORD_INDEX_KEY,
    InMemoryStore,
)
from budget_tracker.state import FinancialState


@pytest.fixture
def samples(labelled_transactions):
    return [(t.description, t.category) for t in labelled_transactions]


@pytest.fixture
def history_state(store, audit_logger, today, labelled_transactions):
    """State whose stored history is the labelled transactions."""
    data = FinancialData(transactions=labelled_transactions)
    store.save_raw(FINANCIAL_DATA_KEY, data.to_storage_json())
    state = FinancialState(store, audit_logger, today=lambda: today)
    state.load()
    return state


class TestText:
    """Tests for tokenization and padding."""

    def test_tokenize(self):
        assert tokenize("Uber ride, to the AIRPORT!") == ["uber", "ride", "to", "the", "airport"]

    def test_tokenize_keeps_digits_and_underscores(self):
        assert tokenize("Netflix_HD 4K plan") == ["netflix_hd", "4k", "plan"]

    def test_pad_and_truncate(self):
        assert pad_sequences([[1, 2]], length=4) == [[1, 2, PAD_INDEX, PAD_INDEX]]
        assert pad_sequences([[1, 2, 3, 4, 5]], length=3) == [[1, 2, 3]]

    def test_vocabulary_ids_start_at_one_and_grow(self):
        vocab = Vocabulary()
        assert vocab.encode("coffee shop coffee") == [1, 2, 1]
        assert vocab.encode("tea") == [3]
        assert len(vocab) == 3

    def test_vocabulary_from_json_drops_bad_entries(self):
        vocab = Vocabulary.from_json({"coffee": 1, "pad": 0, "bad": "x"})
        assert vocab.word_index == {"coffee": 1}

    def test_new_words_never_reuse_an_id(self):
        vocab = Vocabulary.from_json({"a": 1, "b": "x", "c": 3})
        assert vocab.index_of("d") == 4
        assert vocab.max_index == 4
        assert len(set(vocab.word_index.values())) == 3

    def test_embedding_covers_highest_id(self, classifier_settings):
        classifier = TransactionClassifier(settings=classifier_settings)
        assert classifier.embedding_input_dim(Vocabulary({"rent": 150}).max_index) == 151


class TestTransactionClassifier:
    """Tests for the network wrapper."""

    def test_too_few_samples(self, classifier_settings):
        classifier = TransactionClassifier(settings=classifier_settings)
        with pytest.raises(InsufficientDataError, match="Need at least 3 transactions"):
            classifier.train([("Coffee", "Food"), ("Bus", "Transportation")])
        assert classifier.is_trained is False

    def test_predict_before_training(self, classifier_settings):
        classifier = TransactionClassifier(settings=classifier_settings)
        with pytest.raises(ModelNotTrainedError):
            classifier.predict_category("Coffee")

    def test_build_model_shape(self, classifier_settings):
        classifier = TransactionClassifier(settings=classifier_settings)
        model = classifier.build_model(vocabulary_size=10)
        assert model.layers[0].input_dim == 100
        assert model.output_shape == (None, len(DEFAULT_CATEGORIES))

        large = classifier.build_model(vocabulary_size=250)
        assert large.layers[0].input_dim == 251

    def test_train_and_predict(self, classifier_settings, samples):
        classifier = TransactionClassifier(settings=classifier_settings)
        summary = classifier.train(samples)

        assert classifier.is_trained
        assert summary.sample_count == len(samples)
        assert summary.vocabulary_size == len(classifier.vocabulary)
        assert classifier.predict_category("Grocery shopping") in DEFAULT_CATEGORIES

    def test_unseen_words_beyond_embedding_table(self, samples):
        settings = ClassifierSettings(epochs=1, batch_size=8, min_vocabulary_size=2)
        classifier = TransactionClassifier(settings=settings)
        classifier.train(samples)
        size_after_training = len(classifier.vocabulary)

        category = classifier.predict_category("completely novel words never seen")
        assert category in DEFAULT_CATEGORIES
        assert len(classifier.vocabulary) > size_after_training

    def test_save_and_restore(self, classifier_settings, samples, store):
        original = TransactionClassifier(settings=classifier_settings)
        original.train(samples)
        assert original.save(store) is True
        assert isinstance(store.load_json(WORD_INDEX_KEY), dict)

        restored = TransactionClassifier(settings=classifier_settings)
        assert restored.load(store) is True
        assert restored.is_trained
        assert restored.vocabulary.word_index == original.vocabulary.word_index
        for text in ("Grocery shopping", "Electric bill", "Uber ride"):
            assert restored.predict_category(text) == original.predict_category(text)

    def test_load_with_nothing_stored(self, classifier_settings, store):
        classifier = TransactionClassifier(settings=classifier_settings)
        assert classifier.load(store) is False

    def test_load_with_corrupt_model(self, classifier_settings, store):
        store.save_json(MODEL_KEY, {"topology": "{not keras", "weights": []})
        store.save_json(WORD_INDEX_KEY, {"coffee": 1})
        classifier = TransactionClassifier(settings=classifier_settings)
        assert classifier.load(store) is False
        assert classifier.is_trained is False


class TestCategoryService:
    """Tests for the classifier lifecycle."""

    def test_untrained_prediction_falls_back(self, state, store, classifier_settings):
        service = CategoryService(
            TransactionClassifier(settings=classifier_settings),
            store,
            state,
            settings=classifier_settings,
        )
        assert service.predict_category("Grocery shopping") == "Other"

    def test_train_with_insufficient_data(self, empty_state, store, audit_logger, classifier_settings, today):
        service = CategoryService(
            TransactionClassifier(settings=classifier_settings),
            store,
            empty_state,
            audit_logger,
            settings=classifier_settings,
        )
        assert service.train() is False
        assert service.is_trained is False
        assert service.last_error == "Need at least 3 transactions to train the model"
        events = audit_logger.recent_events(limit=50)
        assert any(e.event_type == AuditEventType.CLASSIFIER_INSUFFICIENT_DATA for e in events)

    def test_training_samples_skip_unknown_categories(self, history_state, store, classifier_settings, today):
        history_state.add_transaction(TransactionDraft(
            description="Dog food",
            amount=Decimal("20"),
            category="Pets",
            transaction_date=today,
        ))
        service = CategoryService(
            TransactionClassifier(settings=classifier_settings),
            store,
            history_state,
            settings=classifier_settings,
        )
        labels = {label for _, label in service.training_samples()}
        assert "Pets" not in labels

    def test_train_persists_model(self, history_state, store, audit_logger, classifier_settings):
        service = CategoryService(
            TransactionClassifier(settings=classifier_settings),
            store,
            history_state,
            audit_logger,
            settings=classifier_settings,
        )
        assert service.train() is True
        assert service.is_trained
        assert service.last_error is None
        assert MODEL_KEY in store.keys()
        assert WORD_INDEX_KEY in store.keys()
        assert service.predict_category("Supermarket groceries") in DEFAULT_CATEGORIES

    def test_initialize_auto_trains_with_enough_history(self, history_state, store, classifier_settings):
        service = CategoryService(
            TransactionClassifier(settings=classifier_settings),
            store,
            history_state,
            settings=classifier_settings,
        )
        assert len(history_state.transactions) > classifier_settings.auto_train_threshold
        try:
            service.initialize()
            assert service.wait_for_training(timeout=120) is True
            assert service.is_trained
            assert MODEL_KEY in store.keys()
        finally:
            service.shutdown()

    def test_initialize_does_not_wait_for_auto_train(self, history_state, store, classifier_settings):
        release = threading.Event()

        def slow_train(samples):
            release.wait(timeout=10)
            return TrainingSummary(sample_count=len(samples), vocabulary_size=3, epochs=1)

        classifier = MagicMock()
        classifier.categories = DEFAULT_CATEGORIES
        classifier.is_trained = False
        classifier.load.return_value = False
        classifier.train.side_effect = slow_train
        classifier.save.return_value = True

        service = CategoryService(classifier, store, history_state, settings=classifier_settings)
        try:
            assert service.initialize() is False
            assert service.is_training is True

            release.set()
            service.wait_for_training(timeout=10)
            assert service.is_training is False
            classifier.train.assert_called_once()
        finally:
            release.set()
            service.shutdown()

    def test_initialize_restores_before_training(self, history_state, store, audit_logger, classifier_settings):
        first = CategoryService(
            TransactionClassifier(settings=classifier_settings),
            store,
            history_state,
            settings=classifier_settings,
        )
        first.train()

        second = CategoryService(
            TransactionClassifier(settings=classifier_settings),
            store,
            history_state,
            audit_logger,
            settings=classifier_settings,
        )
        assert second.initialize() is True
        types = [e.event_type for e in audit_logger.recent_events(limit=50)]
        assert AuditEventType.CLASSIFIER_RESTORED in types
        assert AuditEventType.CLASSIFIER_TRAINING_STARTED not in types

    def test_initialize_without_history_stays_untrained(self, state, store, classifier_settings):
        service = CategoryService(
            TransactionClassifier(settings=classifier_settings),
            store,
            state,
            settings=classifier_settings,
        )
        # demo data has only three transactions
        assert service.initialize() is False
        assert service.is_trained is False

    def test_prediction_error_falls_back(self, state, store, classifier_settings):
        classifier = MagicMock()
        classifier.is_trained = True
        classifier.predict_category.side_effect = RuntimeError("boom")
        service = CategoryService(classifier, store, state, settings=classifier_settings)
        assert service.predict_category("anything") == "Other"

    def test_background_training_is_exclusive(self, state, store, classifier_settings):
        release = threading.Event()

        def slow_train(samples):
            release.wait(timeout=10)
            return TrainingSummary(sample_count=len(samples), vocabulary_size=3, epochs=1)

        classifier = MagicMock()
        classifier.categories = DEFAULT_CATEGORIES
        classifier.train.side_effect = slow_train
        classifier.save.return_value = True

        service = CategoryService(classifier, store, state, settings=classifier_settings)
        try:
            future = service.start_training()
            assert future is not None
            assert service.is_training is True
            assert service.start_training() is None
            assert service.train() is False

            release.set()
            assert future.result(timeout=10) is True
            assert service.is_training is False
        finally:
            release.set()
            service.shutdown()

    def test_training_failure_is_reported(self, state, classifier_settings):
        classifier = MagicMock()
        classifier.categories = DEFAULT_CATEGORIES
        classifier.train.side_effect = ValueError("bad shapes")
        service = CategoryService(classifier, InMemoryStore(), state, settings=classifier_settings)

        assert service.train() is False
        assert "bad shapes" in service.last_error
