"""Configuration module for iconscope."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

# TTLの許容範囲
LOCAL_TTL_HOURS_RANGE = (1, 168)
FALLBACK_TTL_DAYS_RANGE = (1, 30)


class ConfigError(Exception):
    """設定ファイル読み込みエラー"""

    pass


def _check_range(name: str, value: Any, bounds: tuple[int, int]) -> None:
    """整数値が範囲内かを検証する"""
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} は整数である必要があります: {value!r}")
    if not low <= value <= high:
        raise ConfigError(f"{name} は {low}〜{high} の範囲で指定してください: {value}")


def _check_minimum(name: str, value: Any, minimum: int) -> None:
    """整数値が下限以上かを検証する"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} は整数である必要があります: {value!r}")
    if value < minimum:
        raise ConfigError(f"{name} は {minimum} 以上で指定してください: {value}")


@dataclass(frozen=True)
class CacheConfig:
    """キャッシュ設定

    Attributes:
        local_ttl_hours: ローカル層の有効期間（時間）
        fallback_ttl_days: フォールバック層の有効期間（日）
        persist: CLI実行時にキャッシュをファイルへ保存するか
    """

    local_ttl_hours: int = 24
    fallback_ttl_days: int = 7
    persist: bool = True

    def __post_init__(self) -> None:
        _check_range("cache.local_ttl_hours", self.local_ttl_hours, LOCAL_TTL_HOURS_RANGE)
        _check_range("cache.fallback_ttl_days", self.fallback_ttl_days, FALLBACK_TTL_DAYS_RANGE)

    @property
    def local_ttl(self) -> timedelta:
        return timedelta(hours=self.local_ttl_hours)

    @property
    def fallback_ttl(self) -> timedelta:
        return timedelta(days=self.fallback_ttl_days)


@dataclass(frozen=True)
class RemoteConfig:
    """リモートフォールバック設定"""

    enabled: bool = True
    timeout: float = 10.0


@dataclass(frozen=True)
class CustomIconConfig:
    """カスタムアイコン設定

    Attributes:
        enabled: カスタムアイコンを参照するか
        directory: 保存ディレクトリ（Noneの場合はデータディレクトリ配下）
    """

    enabled: bool = True
    directory: Path | None = None


@dataclass(frozen=True)
class ScanConfig:
    """ベンダーツリー走査の上限設定"""

    max_depth: int = 2
    max_entries: int = 256
    max_candidates: int = 16

    def __post_init__(self) -> None:
        _check_minimum("scan.max_depth", self.max_depth, 0)
        _check_minimum("scan.max_entries", self.max_entries, 1)
        _check_minimum("scan.max_candidates", self.max_candidates, 1)


@dataclass(frozen=True)
class EngineConfig:
    """ルート設定"""

    cache: CacheConfig = field(default_factory=CacheConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    custom_icons: CustomIconConfig = field(default_factory=CustomIconConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    preferred_size: int = 32


def load_config(path: Path) -> EngineConfig:
    """設定ファイルを読み込む

    Args:
        path: 設定ファイルパス

    Returns:
        EngineConfig: 読み込んだ設定（デフォルトとマージ済み）

    Raises:
        ConfigError: ファイル読み込み、パース、値の検証エラー
    """
    if not path.exists():
        raise ConfigError(f"設定ファイルが見つかりません: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML解析エラー: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("設定ファイルはYAMLのマッピング形式である必要があります")

    default = get_default_config()

    preferred_size = data.get("preferred_size", default.preferred_size)
    if isinstance(preferred_size, bool) or not isinstance(preferred_size, int) or preferred_size <= 0:
        raise ConfigError(f"preferred_size は正の整数である必要があります: {preferred_size!r}")

    try:
        return EngineConfig(
            cache=_merge_cache_config(data.get("cache", {}), default.cache),
            remote=_merge_remote_config(data.get("remote", {}), default.remote),
            custom_icons=_merge_custom_icon_config(data.get("custom_icons", {}), default.custom_icons),
            scan=_merge_scan_config(data.get("scan", {}), default.scan),
            preferred_size=preferred_size,
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"設定値が不正です: {e}") from e


def get_default_config() -> EngineConfig:
    """デフォルト設定を取得する"""
    return EngineConfig()


def _merge_cache_config(data: dict[str, Any], default: CacheConfig) -> CacheConfig:
    """キャッシュ設定をマージする"""
    if not isinstance(data, dict):
        return default
    return CacheConfig(
        local_ttl_hours=data.get("local_ttl_hours", default.local_ttl_hours),
        fallback_ttl_days=data.get("fallback_ttl_days", default.fallback_ttl_days),
        persist=bool(data.get("persist", default.persist)),
    )


def _merge_remote_config(data: dict[str, Any], default: RemoteConfig) -> RemoteConfig:
    """リモートフォールバック設定をマージする"""
    if not isinstance(data, dict):
        return default
    return RemoteConfig(
        enabled=bool(data.get("enabled", default.enabled)),
        timeout=float(data.get("timeout", default.timeout)),
    )


def _merge_custom_icon_config(
    data: dict[str, Any], default: CustomIconConfig
) -> CustomIconConfig:
    """カスタムアイコン設定をマージする"""
    if not isinstance(data, dict):
        return default
    directory = data.get("directory")
    return CustomIconConfig(
        enabled=bool(data.get("enabled", default.enabled)),
        directory=Path(directory).expanduser() if directory else default.directory,
    )


def _merge_scan_config(data: dict[str, Any], default: ScanConfig) -> ScanConfig:
    """走査設定をマージする"""
    if not isinstance(data, dict):
        return default
    return ScanConfig(
        max_depth=int(data.get("max_depth", default.max_depth)),
        max_entries=int(data.get("max_entries", default.max_entries)),
        max_candidates=int(data.get("max_candidates", default.max_candidates)),
    )
