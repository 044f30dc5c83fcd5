"""
Canned reply bodies keyed by intent category.
"""

from types import MappingProxyType
from typing import Mapping

from inbox_triage.email_processing.models import Category

REPLY_TEMPLATES: Mapping[Category, str] = MappingProxyType({
    Category.INTERESTED: (
        "Thank you for your interest! We would love to discuss further. "
        "Are you available for a demo call? Please suggest a time that works for you."
    ),
    Category.NOT_INTERESTED: (
        "Thank you for your response. If you change your mind or have any questions "
        "in the future, feel free to reach out."
    ),
    Category.REQUIRES_MORE_INFORMATION: (
        "Thank you for reaching out. Could you please provide more details about what "
        "you need more information on? We're here to help."
    ),
})


class ReplyComposer:
    """Pure mapping from category to reply body; performs no I/O."""

    def __init__(self, templates: Mapping[Category, str] = REPLY_TEMPLATES):
        missing = set(Category) - set(templates)
        if missing:
            raise ValueError(f"No reply template for categories: {sorted(c.name for c in missing)}")
        self.templates = templates

    def compose(self, category: Category) -> str:
        """
        Return the reply body for a category.

        Raises:
            TypeError: If called with anything other than a Category
        """
        if not isinstance(category, Category):
            raise TypeError(f"Expected Category, got {type(category).__name__}")
        return self.templates[category]
