"""プログラム名のあいまい一致

ベンダーツリー走査向けの記号を無視した一致と、リモートフォールバック向けの
空白を保持した別名・発行元の一致を提供する。
"""

from __future__ import annotations

import re

_SEPARATOR_PATTERN = re.compile(r"[\W_]+")

# 単語単位の一致に使う最小文字数（これ以下の単語は無視する）
MIN_WORD_LENGTH = 3

# 発行元の比較で無視する法人格の語
CORPORATE_SUFFIXES = frozenset(
    {"inc", "incorporated", "llc", "ltd", "limited", "corp", "corporation", "co", "company", "gmbh", "ab", "ag", "sa"}
)


def fold_name(text: str | None) -> str:
    """小文字化し、連続する空白を1つにまとめる（単語の区切りは保持する）"""
    return " ".join((text or "").split()).casefold()


def normalize_name(text: str | None) -> str:
    """比較用に名前を正規化する

    小文字化し、空白と記号をすべて取り除く（例: "7-Zip 23.01" -> "7zip2301"）。
    """
    if not text:
        return ""
    return _SEPARATOR_PATTERN.sub("", text.casefold())


def name_words(text: str | None) -> list[str]:
    """名前を単語に分割する（MIN_WORD_LENGTH未満の単語は除外）"""
    if not text:
        return []
    return [w for w in _SEPARATOR_PATTERN.split(text.casefold()) if len(w) >= MIN_WORD_LENGTH]


def names_match(left: str | None, right: str | None) -> bool:
    """正規化した名前が双方向の部分文字列として一致するかを判定する

    どちらかが正規化後に空になる場合は一致としない。
    """
    a = normalize_name(left)
    b = normalize_name(right)
    if not a or not b:
        return False
    return a in b or b in a


def words_match(name: str | None, keyword: str | None) -> bool:
    """名前のいずれかの単語がキーワードと双方向に一致するかを判定する"""
    normalized_keyword = normalize_name(keyword)
    if not normalized_keyword:
        return False
    return any(word in normalized_keyword or normalized_keyword in word for word in name_words(name))


def alias_matches(name: str | None, alias: str | None) -> bool:
    """プログラム名が別名と一致するかを判定する

    大文字小文字だけを無視し、空白は保持したまま双方向の部分一致を調べる。
    一致しなければ、空白で区切った3文字以上の単語ごとに別名との双方向一致を調べる。

    Args:
        name: プログラム名
        alias: 別名

    Returns:
        一致する場合はTrue
    """
    folded_name = fold_name(name)
    folded_alias = fold_name(alias)
    if not folded_name or not folded_alias:
        return False
    if folded_alias in folded_name or folded_name in folded_alias:
        return True
    return any(
        len(word) >= MIN_WORD_LENGTH and (word in folded_alias or folded_alias in word)
        for word in folded_name.split(" ")
    )


def publisher_words(text: str | None) -> frozenset[str]:
    """発行元を法人格の語を除いた単語の集合にする"""
    if not text:
        return frozenset()
    return frozenset(w for w in _SEPARATOR_PATTERN.split(text.casefold()) if w and w not in CORPORATE_SUFFIXES)


def publishers_match(left: str | None, right: str | None) -> bool:
    """発行元どうしが単語単位で一致するかを判定する

    法人格の語を除いた単語集合の一方が他方に含まれる場合に一致とする
    （例: "HP Inc." と "HP Development Company"）。どちらかが空なら一致としない。
    """
    a = publisher_words(left)
    b = publisher_words(right)
    if not a or not b:
        return False
    return a <= b or b <= a
