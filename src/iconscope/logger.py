"""アイコン解決の診断ログと進捗表示

VerboseLevel (詳細ログレベル)に応じて標準出力への表示を絞り込み、
ログファイルにはレベルに関係なくすべてを書き出す。
戦略チェーンの各ステップの失敗は、プログラム名・試行パス・ステップ番号と共に記録する。
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from iconscope.cache import CacheStats
    from iconscope.types import ErrorKind, Provenance


class VerboseLevel(IntEnum):
    """詳細ログレベル

    QUIET: 何も表示しない
    NORMAL: 結果とサマリを表示
    VERBOSE: ステップ失敗の詳細も表示（-vオプション）
    DEBUG: キャッシュヒット等の内部動作も表示（-vvオプション）
    """

    QUIET = -1
    NORMAL = 0
    VERBOSE = 1
    DEBUG = 2


@dataclass
class LogConfig:
    """ログ設定

    Attributes:
        verbose_level: ログの詳細度レベル
        log_file: ログ出力先ファイルパス（Noneの場合はファイル出力なし）
        use_emoji: 絵文字を使用するか
    """

    verbose_level: VerboseLevel = VerboseLevel.NORMAL
    log_file: Path | None = None
    use_emoji: bool = True


class ResolutionLogger:
    """アイコン解決のログ出力

    使用例:
        >>> with ResolutionLogger(LogConfig(verbose_level=VerboseLevel.VERBOSE)) as logger:
        ...     logger.log_step_failure("7-Zip", 3, ErrorKind.NOT_FOUND, "パスが存在しません")
        [step 3] 7-Zip -> NotFound: パスが存在しません
    """

    def __init__(self, config: LogConfig | None = None) -> None:
        self._config = config or LogConfig()
        self._log_file: TextIO | None = None
        if self._config.log_file:
            # closeまたは__exit__で閉じる
            self._log_file = open(self._config.log_file, "a", encoding="utf-8")  # noqa: SIM115

    def __enter__(self) -> ResolutionLogger:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """ログファイルを閉じる"""
        if self._log_file:
            self._log_file.close()
            self._log_file = None

    @property
    def config(self) -> LogConfig:
        return self._config

    def _emit(self, level: VerboseLevel, label: str, message: str) -> None:
        if self._config.verbose_level >= level:
            print(message)
        if self._log_file:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self._log_file.write(f"[{timestamp}] {label}: {message}\n")
            self._log_file.flush()

    def info(self, message: str) -> None:
        """情報メッセージを出力する（NORMAL以上）"""
        self._emit(VerboseLevel.NORMAL, "INFO", message)

    def verbose(self, message: str) -> None:
        """詳細メッセージを出力する（VERBOSE以上）"""
        self._emit(VerboseLevel.VERBOSE, "VERBOSE", message)

    def debug(self, message: str) -> None:
        """デバッグメッセージを出力する（DEBUG以上）"""
        self._emit(VerboseLevel.DEBUG, "DEBUG", message)

    def warning(self, message: str) -> None:
        """警告メッセージを出力する（NORMAL以上）"""
        self._emit(VerboseLevel.NORMAL, "WARNING", f"警告: {message}")

    def create_progress(self, total: int) -> WarmProgress:
        """一括解決の進捗表示を作成する（QUIETでは表示しない）"""
        return WarmProgress(
            total,
            enabled=self._config.verbose_level > VerboseLevel.QUIET,
            use_emoji=self._config.use_emoji,
        )

    def log_step_failure(
        self,
        program_name: str,
        step: int,
        kind: ErrorKind,
        detail: str = "",
        path: str | Path | None = None,
    ) -> None:
        """戦略ステップの失敗をログする（VERBOSE以上）

        Args:
            program_name: 対象プログラム名
            step: ステップ番号（1〜6）
            kind: エラー種別
            detail: 詳細メッセージ
            path: 試行したパスまたはURL
        """
        path_part = f" path={path}" if path else ""
        detail_part = f": {detail}" if detail else ""
        self.verbose(f"[step {step}] {program_name} -> {kind.value}{path_part}{detail_part}")

    def log_step_skip(self, program_name: str, step: int, reason: str) -> None:
        """戦略ステップのスキップをログする（DEBUG以上）"""
        self.debug(f"[step {step}] {program_name} -> skip: {reason}")

    def log_resolution(
        self, program_name: str, provenance: Provenance, cache_hit: bool = False
    ) -> None:
        """解決結果をログする（DEBUG以上）"""
        origin = "cache" if cache_hit else "resolved"
        self.debug(f"{program_name}: {provenance.value} ({origin})")

    def log_summary(self, label: str, stats: CacheStats) -> None:
        """キャッシュ統計のサマリを出力する（NORMAL以上）"""
        emoji = "\U0001f5c2" if self._config.use_emoji else "[cache]"
        self.info(
            f"{emoji} {label}: total={stats.total_entries} "
            f"valid={stats.valid_entries} expired={stats.expired_entries}"
        )


class WarmProgress:
    """一括解決の進捗表示

    解決済み件数を進捗バーで、取得元ごとの件数を末尾に表示する。
    """

    BAR_WIDTH = 30

    def __init__(self, total: int, enabled: bool = True, use_emoji: bool = True) -> None:
        self.total = total
        self.done = 0
        self.provenances: Counter[str] = Counter()
        self._enabled = enabled
        self._use_emoji = use_emoji

    def start(self, label: str) -> None:
        if self._enabled:
            prefix = "\U0001f50d " if self._use_emoji else ""
            print(f"{prefix}{label} ({self.total}件)")

    def advance(self, provenance: Provenance) -> None:
        """1件の解決を記録する"""
        self.done += 1
        self.provenances[provenance.value] += 1
        if self._enabled and self.total > 0:
            filled = self.BAR_WIDTH * self.done // self.total
            bar = "#" * filled + "-" * (self.BAR_WIDTH - filled)
            print(f"\r   [{bar}] {self.done}/{self.total}", end="", flush=True)

    def finish(self) -> None:
        if not self._enabled:
            return
        mark = "✓" if self._use_emoji else "done"
        breakdown = " ".join(f"{name}={count}" for name, count in sorted(self.provenances.items()))
        print(f"\r   {mark} {self.done}/{self.total} {breakdown}".rstrip())
