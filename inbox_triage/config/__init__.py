from .settings import EnvironmentType, TriageSettings, get_settings
from .logging_config import setup_logging

__all__ = [
    'EnvironmentType',
    'TriageSettings',
    'get_settings',
    'setup_logging',
]
