"""Unit tests for language codes, scripts and detection."""

import pytest

from linguini.language.codes import normalize_language_code, primary_subtag, same_language, display_name
from linguini.language.detector import LanguageDetector, detect_language_by_script
from linguini.language.scripts import is_target_script, uses_character_segmentation


class TestLanguageCodes:
    """Test code normalization."""

    def test_normalize_full_tags(self):
        assert normalize_language_code("zh-Hans") == "zh-CN"
        assert normalize_language_code("zh-HK") == "zh-TW"
        assert normalize_language_code("EN_gb") == "en-US"

    def test_normalize_primary_subtag(self):
        """Unknown regions fall back to the primary subtag."""
        assert normalize_language_code("fr-LU") == "fr-FR"

    def test_normalize_unknown(self):
        assert normalize_language_code("xx-YY") is None
        assert normalize_language_code("xx", default="en-US") == "en-US"
        assert normalize_language_code(None) is None

    def test_same_language(self):
        assert same_language("en-US", "en-GB")
        assert not same_language("en-US", "fr-FR")
        assert not same_language(None, None)

    def test_primary_subtag(self):
        assert primary_subtag("zh_TW") == "zh"
        assert primary_subtag("") == ""

    def test_display_name(self):
        assert display_name("fr") == "French"
        assert display_name("xx") == "xx"


class TestScripts:
    """Test script classification."""

    def test_character_segmented_languages(self):
        assert uses_character_segmentation("zh-CN")
        assert uses_character_segmentation("ja")
        assert uses_character_segmentation("th-TH")
        assert not uses_character_segmentation("en-US")

    def test_chinese_target_script(self):
        assert is_target_script("猫", "zh-CN")
        assert not is_target_script("a", "zh-CN")

    def test_word_language_target_script(self):
        """For space-separated languages, anything but whitespace is target text."""
        assert is_target_script("a", "en-US")
        assert not is_target_script(" ", "en-US")


class TestScriptHeuristic:
    """Test the character-distribution fallback."""

    def test_chinese(self):
        assert detect_language_by_script("你好世界") == "zh-CN"

    def test_japanese_needs_kana(self):
        assert detect_language_by_script("猫がいます") == "ja-JP"

    def test_korean(self):
        assert detect_language_by_script("안녕하세요") == "ko-KR"

    def test_thai(self):
        assert detect_language_by_script("สวัสดีครับ") == "th-TH"

    def test_default_english(self):
        assert detect_language_by_script("hello") == "en-US"

    def test_nothing_countable(self):
        assert detect_language_by_script("") is None
        assert detect_language_by_script("€€€") is None


class TestLanguageDetector:
    """Test the layered detector."""

    @pytest.mark.asyncio
    async def test_declared_language_wins(self):
        detector = LanguageDetector()
        result = await detector.detect("你好世界", declared="fr")

        assert result.language == "fr-FR"
        assert result.method == "declared"

    @pytest.mark.asyncio
    async def test_unknown_declared_language_is_ignored(self):
        detector = LanguageDetector(use_statistical=False)
        result = await detector.detect("你好世界", declared="klingon")

        assert result.language == "zh-CN"
        assert result.method == "script"

    @pytest.mark.asyncio
    async def test_short_text_uses_script_heuristic(self):
        """Texts under the minimum length skip the statistical detector."""
        detector = LanguageDetector(min_text_length=10)
        result = await detector.detect("你好")

        assert result.language == "zh-CN"
        assert result.method == "script"

    @pytest.mark.asyncio
    async def test_statistical_detection(self):
        detector = LanguageDetector()
        text = (
            "Le gouvernement a annoncé mardi une nouvelle série de mesures pour "
            "soutenir les agriculteurs touchés par la sécheresse de cet été."
        )
        result = await detector.detect(text)

        assert result.language == "fr-FR"
        assert result.method == "statistical"
        assert result.confidence >= 0.5

    @pytest.mark.asyncio
    async def test_every_layer_failing(self):
        detector = LanguageDetector(use_statistical=False)
        result = await detector.detect("€€€")

        assert not result.succeeded
        assert result.language is None
