"""Fallback module for iconscope.

ローカルでアイコンを取得できない場合のフォールバックを提供するモジュール。
"""

from iconscope.fallback.generic import GenericIconProvider
from iconscope.fallback.identities import IDENTITIES, IconIdentity
from iconscope.fallback.remote import RemoteFallbackProvider

__all__ = [
    "IDENTITIES",
    "GenericIconProvider",
    "IconIdentity",
    "RemoteFallbackProvider",
]
