"""Unit tests for vocabulary level matching."""

from linguini.vocabulary.matcher import InMemoryVocabulary, match_chunk_level, tokenize


def test_tokenize():
    assert tokenize("The cat, the HAT!") == ["the", "cat", "the", "hat"]


def test_exact_phrase_match_wins():
    vocabulary = InMemoryVocabulary({("ice cream", "en"): 5, ("ice", "en"): 1})
    assert match_chunk_level("Ice cream", "en-US", vocabulary) == 5


def test_lowest_token_level():
    """The hardest known word sets the level of the chunk."""
    vocabulary = InMemoryVocabulary({("cat", "en"): 2, ("ran", "en"): 5})
    assert match_chunk_level("The cat ran", "en-US", vocabulary) == 2


def test_unknown_chunk():
    vocabulary = InMemoryVocabulary({("cat", "en"): 2})
    assert match_chunk_level("le chien", "fr-FR", vocabulary) is None


def test_language_keys_use_primary_subtag():
    vocabulary = InMemoryVocabulary()
    vocabulary.add("Chat", "fr-FR", 3)

    assert len(vocabulary) == 1
    assert vocabulary.lookup_known_word_level("chat", "fr-CA") == 3
    assert vocabulary.lookup_known_word_level("chat", "en-US") is None
