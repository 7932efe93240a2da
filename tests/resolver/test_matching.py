"""あいまい一致のテスト"""

import pytest

from iconscope.resolver.matching import (
    alias_matches,
    fold_name,
    name_words,
    names_match,
    normalize_name,
    publishers_match,
    words_match,
)


class TestNormalizeName:
    """名前の正規化のテスト"""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            pytest.param("7-Zip 23.01 (x64)", "7zip2301x64", id="正常系: 記号と空白を除去"),
            pytest.param("Notepad++", "notepad", id="正常系: 記号のみの部分"),
            pytest.param("VLC_Media_Player", "vlcmediaplayer", id="正常系: アンダースコア"),
            pytest.param("", "", id="異常系: 空文字列"),
            pytest.param(None, "", id="異常系: None"),
        ],
    )
    def test_normalize_name(self, text: str | None, expected: str) -> None:
        """小文字化して空白と記号を取り除く"""
        assert normalize_name(text) == expected


def test_name_words_drops_short_words() -> None:
    """2文字以下の単語は除外される"""
    assert name_words("HP Wolf Security - Console") == ["wolf", "security", "console"]


class TestNamesMatch:
    """双方向部分一致のテスト"""

    @pytest.mark.parametrize(
        ("left", "right", "expected"),
        [
            pytest.param("7-Zip", "7-Zip", True, id="正常系: 完全一致"),
            pytest.param("7-Zip 23.01 (x64)", "7-Zip", True, id="正常系: 名前がフォルダ名を含む"),
            pytest.param("Zoom", "Zoom Video Communications", True, id="正常系: フォルダ名が名前を含む"),
            pytest.param("ANYDESK", "AnyDesk", True, id="正常系: 大文字小文字を区別しない"),
            pytest.param("AnyDesk", "TeamViewer", False, id="正常系: 不一致"),
            pytest.param("", "AnyDesk", False, id="異常系: 空文字列は一致しない"),
            pytest.param("++", "Notepad++", False, id="異常系: 正規化後に空"),
        ],
    )
    def test_names_match(self, left: str, right: str, expected: bool) -> None:
        """正規化した名前の双方向部分一致を判定する"""
        assert names_match(left, right) is expected


class TestWordsMatch:
    """単語単位の一致のテスト"""

    @pytest.mark.parametrize(
        ("name", "keyword", "expected"),
        [
            pytest.param("Microsoft Word 2019", "word", True, id="正常系: 単語がキーワードと一致"),
            pytest.param("HP Sure Click", "hp sure recover", True, id="正常系: 単語がキーワードに含まれる"),
            pytest.param("HP Tool", "hp", False, id="正常系: 短い単語は無視"),
            pytest.param("AnyDesk", "teams", False, id="正常系: 不一致"),
            pytest.param("Word", "", False, id="異常系: 空キーワード"),
        ],
    )
    def test_words_match(self, name: str, keyword: str, expected: bool) -> None:
        """3文字以上の単語とキーワードの双方向一致を判定する"""
        assert words_match(name, keyword) is expected


def test_fold_name_keeps_word_boundaries() -> None:
    """小文字化して空白を1つにまとめる"""
    assert fold_name("  HP   Smart ") == "hp smart"


class TestAliasMatches:
    """別名との一致のテスト"""

    @pytest.mark.parametrize(
        ("name", "alias", "expected"),
        [
            pytest.param("7-Zip 23.01 (x64)", "7-zip", True, id="正常系: 名前が別名を含む"),
            pytest.param("Chrome", "google chrome", True, id="正常系: 別名が名前を含む"),
            pytest.param("Spotify Music", "spotify", True, id="正常系: 単語が別名と一致"),
            pytest.param("HP Sure Click", "hp sure recover", True, id="正常系: 単語が別名に含まれる"),
            pytest.param("HP Smart", "ps", False, id="正常系: 単語の境界をまたいで一致しない"),
            pytest.param("Apps Manager", "ps", True, id="正常系: 単語内の部分一致"),
            pytest.param("7zip", "7-zip", False, id="正常系: 記号は無視しない"),
            pytest.param("", "ps", False, id="異常系: 空の名前"),
            pytest.param("Word", "", False, id="異常系: 空の別名"),
        ],
    )
    def test_alias_matches(self, name: str, alias: str, expected: bool) -> None:
        """空白を保持した双方向部分一致と単語単位の一致を判定する"""
        assert alias_matches(name, alias) is expected


class TestPublishersMatch:
    """発行元の一致のテスト"""

    @pytest.mark.parametrize(
        ("left", "right", "expected"),
        [
            pytest.param("HP Inc.", "HP", True, id="正常系: 法人格の語を無視"),
            pytest.param("GOOGLE LLC", "Google LLC", True, id="正常系: 大文字小文字を区別しない"),
            pytest.param("Adobe Systems Incorporated", "Adobe Inc.", True, id="正常系: 一方の単語が他方に含まれる"),
            pytest.param("Inc.", "Adobe Inc.", False, id="正常系: 法人格の語だけでは一致しない"),
            pytest.param("AnyDesk Software GmbH", "Opera Software", False, id="正常系: 共通の単語が一部だけ"),
            pytest.param("HPE", "HP Inc.", False, id="正常系: 単語の一部だけでは一致しない"),
            pytest.param(None, "HP Inc.", False, id="異常系: 発行元なし"),
        ],
    )
    def test_publishers_match(self, left: str | None, right: str, expected: bool) -> None:
        """法人格の語を除いた単語集合の包含で判定する"""
        assert publishers_match(left, right) is expected
