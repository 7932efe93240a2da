"""ユーザー指定のカスタムアイコン

プログラム名ごとにユーザーが登録したアイコンを、カスタムアイコンディレクトリ内の
JSONファイル（1プログラム1ファイル）として保存する。
"""

from __future__ import annotations

import base64
import json
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from iconscope.cache import get_data_dir
from iconscope.resolver.icon import decode_image_bytes
from iconscope.types import IconError, ImageFormat, Provenance, ResolvedIcon

if TYPE_CHECKING:
    from iconscope.logger import ResolutionLogger

CUSTOM_ICONS_DIR_NAME = "custom_icons"


class CustomIconError(Exception):
    """カスタムアイコンの登録・削除に関する例外"""

    pass


def get_custom_icons_dir() -> Path:
    """カスタムアイコンのデフォルト保存ディレクトリを取得する"""
    return get_data_dir() / CUSTOM_ICONS_DIR_NAME


def sanitize_file_name(program_name: str) -> str:
    """プログラム名をファイル名に使える形に変換する

    英数字・"-"・"_" 以外の文字は "_" に置き換える。
    """
    return "".join(c if c.isalnum() or c in "-_" else "_" for c in program_name)


@dataclass(frozen=True)
class CustomIcon:
    """登録済みカスタムアイコン

    Attributes:
        program_name: プログラム名（完全一致で照合）
        data: 画像データ
        format: 画像形式
        size: ピクセルサイズ
        created_at: 登録日時（UTC）
        source_path: 登録元の画像ファイルパス
    """

    program_name: str
    data: bytes
    format: ImageFormat
    size: int
    created_at: datetime
    source_path: str | None = None

    def to_resolved(self) -> ResolvedIcon:
        """解決済みアイコンに変換する"""
        return ResolvedIcon(
            data=self.data,
            format=self.format,
            size=self.size,
            provenance=Provenance.CUSTOM,
            source=self.source_path or f"custom:{self.program_name}",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "program_name": self.program_name,
            "icon_path": self.source_path or "",
            "icon_data": base64.b64encode(self.data).decode("ascii"),
            "format": self.format.value,
            "size": self.size,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CustomIcon:
        return cls(
            program_name=data["program_name"],
            data=base64.b64decode(data["icon_data"], validate=True),
            format=ImageFormat(data["format"]),
            size=int(data["size"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            source_path=data.get("icon_path") or None,
        )


class CustomIconStore:
    """カスタムアイコンの保存・参照を行うクラス

    初回参照時にディレクトリ内のファイルを一度だけ読み込み、
    以後は登録・削除のたびにメモリ上の索引を同期する。

    使用例:
        >>> store = CustomIconStore(Path("~/.local/share/iconscope/custom_icons"))
        >>> store.register("AnyDesk", Path("anydesk.png").read_bytes())
        >>> store.lookup("AnyDesk").format
        <ImageFormat.PNG: 'png'>
    """

    def __init__(
        self,
        directory: Path | None = None,
        logger: ResolutionLogger | None = None,
    ) -> None:
        """CustomIconStoreを初期化する

        Args:
            directory: 保存ディレクトリ（Noneの場合はデフォルト）
            logger: 破損ファイルの警告出力先
        """
        self._directory = directory or get_custom_icons_dir()
        self._logger = logger
        self._index: dict[str, CustomIcon] | None = None
        self._lock = threading.Lock()

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def is_loaded(self) -> bool:
        """索引を読み込み済みか"""
        return self._index is not None

    def path_for(self, program_name: str) -> Path:
        """プログラムのアイコンファイルパスを返す"""
        return self._directory / f"{sanitize_file_name(program_name)}.json"

    def register(
        self, program_name: str, image_bytes: bytes, source_path: str | None = None
    ) -> CustomIcon:
        """カスタムアイコンを登録する

        同じプログラム名の既存の登録は置き換える。

        Args:
            program_name: プログラム名
            image_bytes: 画像データ（PNG/ICO/BMP/SVG等）
            source_path: 登録元の画像ファイルパス（記録用）

        Returns:
            登録したカスタムアイコン

        Raises:
            CustomIconError: プログラム名が空、画像として解釈できない、または保存に失敗した場合
        """
        if not program_name.strip():
            raise CustomIconError("プログラム名が空です")

        image = decode_image_bytes(image_bytes)
        if isinstance(image, IconError):
            raise CustomIconError(f"画像として解釈できません: {image.message}")

        icon = CustomIcon(
            program_name=program_name,
            data=image.data,
            format=image.format,
            size=image.size,
            created_at=datetime.now(UTC),
            source_path=source_path,
        )

        path = self.path_for(program_name)
        with self._lock:
            index = self._load_index()
            try:
                self._directory.mkdir(parents=True, exist_ok=True)
                path.write_text(json.dumps(icon.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
            except OSError as e:
                raise CustomIconError(f"カスタムアイコンを保存できません: {path}: {e}") from e

            # 同じファイル名になる別名の登録は上書きされている
            for name in [n for n in index if self.path_for(n) == path]:
                del index[name]
            index[program_name] = icon
        return icon

    def lookup(self, program_name: str) -> CustomIcon | None:
        """カスタムアイコンを参照する（完全一致）"""
        with self._lock:
            return self._load_index().get(program_name)

    def remove(self, program_name: str) -> bool:
        """カスタムアイコンを削除する

        Returns:
            削除した場合はTrue、登録がなかった場合はFalse

        Raises:
            CustomIconError: ファイルの削除に失敗した場合
        """
        with self._lock:
            index = self._load_index()
            if program_name not in index:
                return False
            path = self.path_for(program_name)
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise CustomIconError(f"カスタムアイコンを削除できません: {path}: {e}") from e
            del index[program_name]
            return True

    def list_icons(self) -> list[CustomIcon]:
        """登録済みのカスタムアイコンをプログラム名順に返す"""
        with self._lock:
            return sorted(self._load_index().values(), key=lambda icon: icon.program_name.casefold())

    def reload(self) -> None:
        """次回参照時にディレクトリを読み直す"""
        with self._lock:
            self._index = None

    def _load_index(self) -> dict[str, CustomIcon]:
        """索引を返す（未読み込みの場合はディレクトリから読み込む）

        呼び出し側でロックを取得していること。
        """
        if self._index is not None:
            return self._index

        index: dict[str, CustomIcon] = {}
        if self._directory.is_dir():
            for path in sorted(self._directory.glob("*.json")):
                try:
                    icon = CustomIcon.from_dict(json.loads(path.read_text(encoding="utf-8")))
                except (OSError, ValueError, KeyError, TypeError) as e:
                    if self._logger is not None:
                        self._logger.warning(f"カスタムアイコンファイルを読み込めません: {path}: {e}")
                    continue
                index[icon.program_name] = icon

        self._index = index
        return index
