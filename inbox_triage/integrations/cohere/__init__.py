from .client import CohereClient

__all__ = ['CohereClient']
