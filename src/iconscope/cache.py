"""Cache module for iconscope.

ローカル抽出アイコン用とフォールバックアイコン用の2層キャッシュを提供する。
各層は独立した有効期間（TTL）を持ち、期限切れエントリは参照時に論理的に存在しないものとして扱う。
"""

from __future__ import annotations

import base64
import json
import os
import platform
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from iconscope.resolver.path import normalize_raw_path
from iconscope.types import ImageFormat, Provenance, ProgramType, ResolvedIcon

if TYPE_CHECKING:
    from iconscope.config import CacheConfig
    from iconscope.types import IconRequest

CACHE_FILE_NAME = "icon_cache.json"
CACHE_FILE_VERSION = 1


class CacheFileError(Exception):
    """キャッシュファイルの読み書きに関する例外"""

    pass


class CacheTier(Enum):
    """キャッシュ層"""

    LOCAL = "local"
    FALLBACK = "fallback"


class CacheScope(Enum):
    """クリア・統計の対象範囲"""

    LOCAL = "local"
    FALLBACK = "fallback"
    BOTH = "both"

    @property
    def tiers(self) -> tuple[CacheTier, ...]:
        """対象となるキャッシュ層を返す"""
        match self:
            case CacheScope.LOCAL:
                return (CacheTier.LOCAL,)
            case CacheScope.FALLBACK:
                return (CacheTier.FALLBACK,)
            case _:
                return (CacheTier.LOCAL, CacheTier.FALLBACK)


_PROVENANCE_TIERS: dict[Provenance, CacheTier] = {
    Provenance.CUSTOM: CacheTier.LOCAL,
    Provenance.LOCAL_EXTRACTION: CacheTier.LOCAL,
    Provenance.VENDOR_TREE_SCAN: CacheTier.LOCAL,
    Provenance.REMOTE_FALLBACK: CacheTier.FALLBACK,
    Provenance.GENERIC: CacheTier.FALLBACK,
}


def tier_for(provenance: Provenance) -> CacheTier:
    """取得元に対応するキャッシュ層を返す"""
    return _PROVENANCE_TIERS[provenance]


@dataclass(frozen=True)
class CacheKey:
    """キャッシュキー

    リクエストの安定したフィールドからI/Oなしで決定的に導出する。
    同一の解決結果になるリクエストは同一のキーになる。
    """

    name: str
    publisher: str
    path: str
    vendor_managed: bool
    program_type: ProgramType

    @classmethod
    def for_request(cls, request: IconRequest) -> CacheKey:
        """リクエストからキャッシュキーを導出する"""
        path = normalize_raw_path(request.icon_path or "")
        return cls(
            name=" ".join(request.name.split()).casefold(),
            publisher=" ".join((request.publisher or "").split()).casefold(),
            path=path.casefold(),
            vendor_managed=request.vendor_managed,
            program_type=request.program_type,
        )

    @property
    def value(self) -> str:
        """キーの文字列表現"""
        vendor = "vf" if self.vendor_managed else "-"
        return "|".join(
            [self.name, self.publisher or "unknown", self.path or "no-path", vendor, self.program_type.value]
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "publisher": self.publisher,
            "path": self.path,
            "vendor_managed": self.vendor_managed,
            "program_type": self.program_type.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheKey:
        return cls(
            name=data["name"],
            publisher=data.get("publisher", ""),
            path=data.get("path", ""),
            vendor_managed=bool(data.get("vendor_managed", False)),
            program_type=ProgramType.parse(data.get("program_type")),
        )


@dataclass(frozen=True)
class CacheEntry:
    """キャッシュエントリ

    Attributes:
        icon: 解決済みアイコン
        inserted_at: 挿入時刻（エポック秒）
        tier: 格納先の層
    """

    icon: ResolvedIcon
    inserted_at: float
    tier: CacheTier


@dataclass(frozen=True)
class CacheStats:
    """キャッシュ統計"""

    total_entries: int
    valid_entries: int
    expired_entries: int


class CacheStore:
    """2層キャッシュストア

    オーケストレーターがコンストラクタで受け取り、所有する。
    すべての読み書きはロックで同期される。

    使用例:
        >>> store = CacheStore(local_ttl=timedelta(hours=24), fallback_ttl=timedelta(days=7))
        >>> store.put(key, icon)
        >>> store.stats(CacheScope.LOCAL)
    """

    def __init__(
        self,
        local_ttl: timedelta = timedelta(hours=24),
        fallback_ttl: timedelta = timedelta(days=7),
        clock: Callable[[], float] = time.time,
    ) -> None:
        """CacheStoreを初期化する

        Args:
            local_ttl: ローカル層の有効期間
            fallback_ttl: フォールバック層の有効期間
            clock: 現在時刻（エポック秒）を返す関数（テスト用の依存性注入）
        """
        self._ttl: dict[CacheTier, timedelta] = {
            CacheTier.LOCAL: local_ttl,
            CacheTier.FALLBACK: fallback_ttl,
        }
        self._clock = clock
        self._tiers: dict[CacheTier, dict[CacheKey, CacheEntry]] = {tier: {} for tier in CacheTier}
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls, config: CacheConfig, clock: Callable[[], float] = time.time
    ) -> CacheStore:
        """設定からCacheStoreを作成する"""
        return cls(local_ttl=config.local_ttl, fallback_ttl=config.fallback_ttl, clock=clock)

    def ttl(self, tier: CacheTier) -> timedelta:
        """層の有効期間を返す"""
        return self._ttl[tier]

    def _is_valid(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at < self._ttl[entry.tier].total_seconds()

    def get(self, key: CacheKey) -> CacheEntry | None:
        """有効なエントリを取得する

        Args:
            key: キャッシュキー

        Returns:
            有効なエントリ。存在しないか期限切れの場合はNone
        """
        now = self._clock()
        with self._lock:
            for tier in CacheTier:
                entry = self._tiers[tier].get(key)
                if entry is not None and self._is_valid(entry, now):
                    return entry
        return None

    def put(self, key: CacheKey, icon: ResolvedIcon, tier: CacheTier | None = None) -> CacheEntry:
        """エントリを格納する

        同じキーの古いエントリは、どちらの層にあっても置き換えられる。

        Args:
            key: キャッシュキー
            icon: 解決済みアイコン
            tier: 格納先の層（Noneの場合は取得元から決定）

        Returns:
            格納したエントリ
        """
        target = tier or tier_for(icon.provenance)
        entry = CacheEntry(icon=icon, inserted_at=self._clock(), tier=target)
        with self._lock:
            for other in CacheTier:
                if other is not target:
                    self._tiers[other].pop(key, None)
            self._tiers[target][key] = entry
        return entry

    def evict_program(self, program_name: str) -> int:
        """指定プログラム名のエントリを両層から削除する

        Returns:
            削除したエントリ数
        """
        name = " ".join(program_name.split()).casefold()
        removed = 0
        with self._lock:
            for entries in self._tiers.values():
                for key in [k for k in entries if k.name == name]:
                    del entries[key]
                    removed += 1
        return removed

    def clear(self, scope: CacheScope = CacheScope.BOTH) -> None:
        """指定範囲のエントリをすべて削除する"""
        with self._lock:
            for tier in scope.tiers:
                self._tiers[tier].clear()

    def stats(self, scope: CacheScope = CacheScope.BOTH) -> CacheStats:
        """呼び出し時点のTTLに基づく統計を返す"""
        now = self._clock()
        total = 0
        valid = 0
        with self._lock:
            for tier in scope.tiers:
                entries = self._tiers[tier].values()
                total += len(entries)
                valid += sum(1 for entry in entries if self._is_valid(entry, now))
        return CacheStats(total_entries=total, valid_entries=valid, expired_entries=total - valid)

    def purge_expired(self) -> int:
        """期限切れエントリを物理的に削除する

        Returns:
            削除したエントリ数
        """
        now = self._clock()
        removed = 0
        with self._lock:
            for entries in self._tiers.values():
                for key in [k for k, e in entries.items() if not self._is_valid(e, now)]:
                    del entries[key]
                    removed += 1
        return removed

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._tiers.values())

    def save(self, path: Path) -> None:
        """キャッシュをJSONファイルに保存する

        Args:
            path: 保存先ファイルパス

        Raises:
            CacheFileError: 書き込みに失敗した場合
        """
        with self._lock:
            tiers = {
                tier.value: [_entry_to_dict(key, entry) for key, entry in entries.items()]
                for tier, entries in self._tiers.items()
            }
        document = {
            "version": CACHE_FILE_VERSION,
            "saved_at": datetime.now(UTC).isoformat(),
            "tiers": tiers,
        }
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            raise CacheFileError(f"キャッシュファイルを書き込めません: {path}: {e}") from e

    def load(self, path: Path) -> int:
        """JSONファイルからキャッシュを復元する

        期限切れのエントリは読み込まない。ファイルが存在しない場合は何もしない。

        Args:
            path: キャッシュファイルパス

        Returns:
            復元したエントリ数

        Raises:
            CacheFileError: ファイルが破損している場合
        """
        if not path.exists():
            return 0

        try:
            document = json.loads(path.read_text(encoding="utf-8"))
            raw_tiers = document["tiers"]
            restored: list[tuple[CacheKey, CacheEntry]] = []
            for tier in CacheTier:
                for item in raw_tiers.get(tier.value, []):
                    restored.append(_entry_from_dict(item, tier))
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise CacheFileError(f"キャッシュファイルが破損しています: {path}: {e}") from e

        now = self._clock()
        count = 0
        with self._lock:
            for key, entry in restored:
                if self._is_valid(entry, now):
                    self._tiers[entry.tier][key] = entry
                    count += 1
        return count


def _entry_to_dict(key: CacheKey, entry: CacheEntry) -> dict[str, Any]:
    icon = entry.icon
    return {
        "key": key.to_dict(),
        "inserted_at": entry.inserted_at,
        "icon": {
            "data": base64.b64encode(icon.data).decode("ascii"),
            "format": icon.format.value,
            "size": icon.size,
            "provenance": icon.provenance.value,
            "source": icon.source,
        },
    }


def _entry_from_dict(item: dict[str, Any], tier: CacheTier) -> tuple[CacheKey, CacheEntry]:
    raw_icon = item["icon"]
    icon = ResolvedIcon(
        data=base64.b64decode(raw_icon["data"], validate=True),
        format=ImageFormat(raw_icon["format"]),
        size=int(raw_icon["size"]),
        provenance=Provenance(raw_icon["provenance"]),
        source=raw_icon.get("source"),
    )
    entry = CacheEntry(icon=icon, inserted_at=float(item["inserted_at"]), tier=tier)
    return CacheKey.from_dict(item["key"]), entry


def get_cache_dir() -> Path:
    """OSごとのキャッシュディレクトリを取得する"""
    system = platform.system()

    if system == "Linux":
        xdg_cache = os.environ.get("XDG_CACHE_HOME")
        base = Path(xdg_cache) if xdg_cache else Path.home() / ".cache"
    elif system == "Darwin":
        base = Path.home() / "Library" / "Caches"
    elif system == "Windows":
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            base = Path(local_app_data) / "iconscope"
        else:
            base = Path.home() / "AppData" / "Local" / "iconscope"
        return base / "cache"
    else:
        base = Path.home() / ".cache"

    return base / "iconscope"


def get_data_dir() -> Path:
    """OSごとのデータディレクトリを取得する"""
    system = platform.system()

    if system == "Linux":
        xdg_data = os.environ.get("XDG_DATA_HOME")
        base = Path(xdg_data) if xdg_data else Path.home() / ".local" / "share"
    elif system == "Darwin":
        base = Path.home() / "Library" / "Application Support"
    elif system == "Windows":
        app_data = os.environ.get("APPDATA")
        base = Path(app_data) if app_data else Path.home() / "AppData" / "Roaming"
    else:
        base = Path.home() / ".local" / "share"

    return base / "iconscope"


def get_cache_file_path() -> Path:
    """キャッシュファイルのデフォルトパスを取得する"""
    return get_cache_dir() / CACHE_FILE_NAME
