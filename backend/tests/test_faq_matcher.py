"""
Unit tests for the FAQ short-circuit matcher.
"""

from mortgage_chat.models import FAQEntry
from mortgage_chat.orchestration.faq_matcher import match_faq


def _faq(faq_id: str, question: str, answer: str = "answer") -> FAQEntry:
    return FAQEntry(id=faq_id, question=question, answer=answer)


class TestMatchFaq:

    def test_case_insensitive_substring(self):
        faqs = [_faq("1", "FHA Loan", "FHA loans are government-backed.")]
        match = match_faq("so what is an fha LOAN exactly?", faqs)
        assert match is not None
        assert match.id == "1"

    def test_no_match_returns_none(self):
        faqs = [_faq("1", "closing costs")]
        assert match_faq("What rates do you offer?", faqs) is None

    def test_first_match_in_collection_order_wins(self):
        faqs = [
            _faq("1", "loan"),
            _faq("2", "fha loan"),
        ]
        # "fha loan" is the closer match, but order decides
        assert match_faq("tell me about an fha loan", faqs).id == "1"

    def test_message_must_contain_question_not_vice_versa(self):
        faqs = [_faq("1", "what is an fha loan")]
        assert match_faq("fha", faqs) is None

    def test_blank_question_never_matches(self):
        faqs = [_faq("1", ""), _faq("2", "   "), _faq("3", "refinance")]
        assert match_faq("can I refinance?", faqs).id == "3"
        assert match_faq("hello", faqs) is None

    def test_empty_faq_list(self):
        assert match_faq("anything", []) is None
