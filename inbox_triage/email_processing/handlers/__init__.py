from .labels import LabelResolver
from .reply_writer import REPLY_TEMPLATES, ReplyComposer

__all__ = ['LabelResolver', 'REPLY_TEMPLATES', 'ReplyComposer']
