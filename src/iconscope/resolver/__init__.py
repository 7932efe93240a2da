"""Resolver module for iconscope.

ローカルのファイルシステムからアイコンを取得するためのモジュール。
パス文字列の解決、アイコンの抽出、ベンダー管理配布アプリの実行ファイル探索を提供する。
"""

from iconscope.resolver.icon import (
    SUPPORTED_EXTENSIONS,
    IconExtractor,
    IconExtractorProtocol,
    decode_image_bytes,
    looks_like_svg,
    select_nearest_size,
)
from iconscope.resolver.matching import (
    alias_matches,
    fold_name,
    name_words,
    names_match,
    normalize_name,
    publishers_match,
    words_match,
)
from iconscope.resolver.path import PathResolver, expand_placeholders, normalize_raw_path
from iconscope.resolver.vendor import ArchitectureHint, VendorTreeScanner

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "ArchitectureHint",
    "IconExtractor",
    "IconExtractorProtocol",
    "PathResolver",
    "VendorTreeScanner",
    "alias_matches",
    "decode_image_bytes",
    "expand_placeholders",
    "fold_name",
    "looks_like_svg",
    "name_words",
    "names_match",
    "normalize_name",
    "normalize_raw_path",
    "publishers_match",
    "select_nearest_size",
    "words_match",
]
