"""
FAQ short-circuit lookup.

A cheap pre-filter run before the model: the first FAQ whose question
appears anywhere in the message wins. No ranking.
"""

from typing import Iterable, Optional

from mortgage_chat.models import FAQEntry


def match_faq(message: str, faqs: Iterable[FAQEntry]) -> Optional[FAQEntry]:
    """
    Find the first FAQ whose question is a case-insensitive substring of the message.

    Args:
        message: Inbound user message
        faqs: FAQ entries in collection order

    Returns:
        The first matching entry, or None
    """
    normalized = message.lower()
    for faq in faqs:
        question = faq.question.lower()
        # An empty question is a substring of everything
        if not question.strip():
            continue
        if question in normalized:
            return faq
    return None
