from .classifier import IntentClassifier, normalize_classification

__all__ = ['IntentClassifier', 'normalize_classification']
