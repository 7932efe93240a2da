"""共通型定義

アイコン解決エンジン全体で共有するリクエスト、結果、エラー種別を定義する。
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any


class ExitCode(IntEnum):
    """CLIの終了コード"""

    SUCCESS = 0
    ERROR = 1
    INVALID_INPUT = 2


class ProgramType(Enum):
    """プログラム種別

    インベントリ側（レジストリスキャナ）が付与する分類。
    汎用アイコンの選択キーとして使用する。
    """

    APPLICATION = "Application"
    SYSTEM_COMPONENT = "SystemComponent"
    UPDATE = "Update"
    PORTABLE = "Portable"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str | ProgramType | None) -> ProgramType:
        """文字列から種別を取得する（大文字小文字を区別しない）

        Args:
            value: 種別文字列（例: "application", "SystemComponent"）

        Returns:
            対応する種別。未知の値の場合はUNKNOWN
        """
        if isinstance(value, ProgramType):
            return value
        if not value:
            return cls.UNKNOWN
        normalized = value.replace("_", "").replace(" ", "").lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        return cls.UNKNOWN


class ImageFormat(Enum):
    """画像ペイロードの形式"""

    PNG = "png"
    SVG = "svg"
    ICO = "ico"
    BMP = "bmp"

    @property
    def mime_type(self) -> str:
        """MIMEタイプを返す"""
        match self:
            case ImageFormat.SVG:
                return "image/svg+xml"
            case ImageFormat.ICO:
                return "image/x-icon"
            case ImageFormat.BMP:
                return "image/bmp"
            case _:
                return "image/png"


class Provenance(Enum):
    """アイコンの取得元

    診断用の表示と、キャッシュ層の振り分けに使用する。
    """

    CUSTOM = "Custom"
    LOCAL_EXTRACTION = "LocalExtraction"
    VENDOR_TREE_SCAN = "VendorTreeScan"
    REMOTE_FALLBACK = "RemoteFallback"
    GENERIC = "Generic"


class ErrorKind(Enum):
    """エラー種別

    INVALID_REQUEST以外はすべてオーケストレーター内で回復される。
    """

    INVALID_REQUEST = "InvalidRequest"
    UNSUPPORTED_FORMAT = "UnsupportedFormat"
    NO_EMBEDDED_ICON = "NoEmbeddedIcon"
    FILE_UNREADABLE = "FileUnreadable"
    CORRUPT_RESOURCE = "CorruptResource"
    NETWORK_FAILURE = "NetworkFailure"
    MALFORMED_PAYLOAD = "MalformedPayload"
    NOT_FOUND = "NotFound"
    UNEXPECTED = "Unexpected"


class InvalidRequestError(ValueError):
    """呼び出し側の契約違反（プログラム名が空）"""

    def __init__(self, message: str = "プログラム名が空です") -> None:
        super().__init__(message)
        self.kind = ErrorKind.INVALID_REQUEST


@dataclass(frozen=True)
class IconRequest:
    """アイコン解決リクエストを表す不変オブジェクト

    Attributes:
        name: プログラム表示名（必須）
        publisher: 発行元
        icon_path: レジストリ等に記録されたアイコン/実行ファイルのパス（不正な場合あり）
        vendor_managed: ベンダー管理配布（VF）によって展開されたか
        program_type: プログラム種別
    """

    name: str
    publisher: str | None = None
    icon_path: str | None = None
    vendor_managed: bool = False
    program_type: ProgramType = ProgramType.UNKNOWN

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> IconRequest:
        """インベントリのプログラムレコードからリクエストを作成する

        Args:
            record: プログラムレコード（name, publisher, icon_path等を含む辞書）

        Returns:
            アイコン解決リクエスト
        """
        icon_path = record.get("icon_path") or record.get("display_icon")
        vendor_managed = record.get("vendor_managed", record.get("is_vf_deployed", False))
        return cls(
            name=str(record.get("name") or ""),
            publisher=record.get("publisher") or None,
            icon_path=icon_path or None,
            vendor_managed=bool(vendor_managed),
            program_type=ProgramType.parse(record.get("program_type")),
        )


@dataclass(frozen=True)
class IconImage:
    """デコード済みのアイコン画像

    Attributes:
        data: エンコード済みペイロード
        format: ペイロードの形式
        size: ピクセルサイズ（ベクター画像の場合は公称サイズ）
    """

    data: bytes
    format: ImageFormat
    size: int


@dataclass(frozen=True)
class IconError:
    """アイコン取得の失敗を表す不変オブジェクト"""

    kind: ErrorKind
    message: str = ""


@dataclass(frozen=True)
class ResolvedIcon:
    """解決済みアイコン

    解決成功時に一度だけ生成され、以後変更されない。

    Attributes:
        data: 画像ペイロード
        format: ペイロードの形式
        size: ピクセルサイズ
        provenance: 取得元
        source: 取得元のパスまたはURL（診断用）
    """

    data: bytes
    format: ImageFormat
    size: int
    provenance: Provenance
    source: str | None = None

    @classmethod
    def from_image(
        cls, image: IconImage, provenance: Provenance, source: str | None = None
    ) -> ResolvedIcon:
        """IconImageから解決済みアイコンを作成する"""
        return cls(
            data=image.data,
            format=image.format,
            size=image.size,
            provenance=provenance,
            source=source,
        )

    def to_data_uri(self) -> str:
        """data URI形式の文字列を返す"""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.format.mime_type};base64,{encoded}"


class StepStatus(Enum):
    """戦略ステップの結果ステータス"""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """戦略ステップの結果を表すタグ付き結果

    Attributes:
        status: ステップの結果ステータス
        icon: 成功時の解決済みアイコン
        error: 失敗時のエラー
        reason: スキップ理由
        attempted: 失敗時に試行したパスまたはURL
    """

    status: StepStatus
    icon: ResolvedIcon | None = None
    error: IconError | None = None
    reason: str = ""
    attempted: str | None = None

    @classmethod
    def success(cls, icon: ResolvedIcon) -> StepResult:
        return cls(status=StepStatus.SUCCESS, icon=icon)

    @classmethod
    def skip(cls, reason: str) -> StepResult:
        return cls(status=StepStatus.SKIPPED, reason=reason)

    @classmethod
    def fail(cls, error: IconError, attempted: str | None = None) -> StepResult:
        return cls(status=StepStatus.FAILED, error=error, attempted=attempted)

    @property
    def is_success(self) -> bool:
        """ステップが成功したかどうかを返す"""
        return self.status == StepStatus.SUCCESS
