"""アイコンファイル・実行ファイルからアイコンを抽出する機能

このモジュールはWindows EXE/DLLに埋め込まれたアイコンリソース、
ICOファイル、ビットマップ画像をデコードし、PNG形式のペイロードとして返す機能を提供します。
"""

from __future__ import annotations

import io
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from icoextract import IconExtractor as IcoExtractor
from icoextract import NoIconsAvailableError
from PIL import Image, UnidentifiedImageError

from iconscope.types import ErrorKind, IconError, IconImage, ImageFormat

ICON_CONTAINER_EXTENSIONS = (".ico",)
BITMAP_EXTENSIONS = (".bmp", ".png")
EXECUTABLE_EXTENSIONS = (".exe", ".dll", ".cpl", ".ocx", ".scr")
SUPPORTED_EXTENSIONS = ICON_CONTAINER_EXTENSIONS + BITMAP_EXTENSIONS + EXECUTABLE_EXTENSIONS

DEFAULT_ICON_SIZE = 32

# そのまま保持するラスタ形式（Pillowの形式名）
_PASSTHROUGH_FORMATS = {
    "PNG": ImageFormat.PNG,
    "ICO": ImageFormat.ICO,
    "BMP": ImageFormat.BMP,
}
_SVG_SNIFF_LENGTH = 1024


def looks_like_svg(data: bytes) -> bool:
    """先頭部分にsvg要素を含むかを判定する"""
    return b"<svg" in data[:_SVG_SNIFF_LENGTH].lower()


def decode_image_bytes(data: bytes, nominal_size: int = DEFAULT_ICON_SIZE) -> IconImage | IconError:
    """メモリ上の画像データを判別する

    SVGは文字列として判別し、それ以外はPillowでデコードできるかを確認する。
    PNG/ICO/BMPはそのまま保持し、その他のラスタ形式はPNGに変換する。

    Args:
        data: 画像データ
        nominal_size: SVGの公称サイズ

    Returns:
        判別した画像。画像として解釈できない場合はMALFORMED_PAYLOADのIconError
    """
    if not data:
        return IconError(ErrorKind.MALFORMED_PAYLOAD, "データが空です")

    if looks_like_svg(data):
        return IconImage(data=data, format=ImageFormat.SVG, size=nominal_size)

    try:
        with Image.open(io.BytesIO(data)) as img:
            sizes = img.info.get("sizes")
            size = max(max(s) for s in sizes) if sizes else max(img.size)
            image_format = _PASSTHROUGH_FORMATS.get(img.format or "")
            if image_format is not None:
                img.verify()
                return IconImage(data=data, format=image_format, size=size)

            img.load()
            buffer = io.BytesIO()
            img.convert("RGBA").save(buffer, "PNG")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
        return IconError(ErrorKind.MALFORMED_PAYLOAD, f"画像として解釈できません: {e}")

    return IconImage(data=buffer.getvalue(), format=ImageFormat.PNG, size=size)


class IconExtractorProtocol(Protocol):
    """アイコン抽出のプロトコル

    ファイルからアイコン画像を取り出すためのインターフェースを定義します。
    """

    def extract(self, path: Path, preferred_size: int = DEFAULT_ICON_SIZE) -> IconImage | IconError:
        """ファイルからアイコンを抽出する

        Args:
            path: 対象ファイルのパス
            preferred_size: 希望するアイコンサイズ（ピクセル）

        Returns:
            抽出したアイコン画像。失敗時はエラー種別を持つIconError
        """
        ...


def select_nearest_size(
    sizes: Iterable[tuple[int, int]], preferred_size: int
) -> tuple[int, int]:
    """希望サイズに最も近いサイズを選択する

    差が同じ場合は大きい方を選ぶ。

    Args:
        sizes: 候補サイズ（幅, 高さ）
        preferred_size: 希望サイズ

    Returns:
        選択したサイズ

    Raises:
        ValueError: 候補が空の場合
    """
    candidates = list(sizes)
    if not candidates:
        raise ValueError("候補サイズがありません")
    return min(candidates, key=lambda s: (abs(max(s) - preferred_size), -max(s)))


class IconExtractor:
    """アイコンを抽出するクラス

    実行ファイルはicoextractでアイコングループをICOとして取り出し、
    ICO/ビットマップはPillowでデコードします。複数サイズを含む場合は
    希望サイズに最も近いものを選択します。
    """

    def can_extract(self, path: Path) -> bool:
        """拡張子から抽出可能なファイルかを判定する（I/Oなし）"""
        return path.suffix.lower() in SUPPORTED_EXTENSIONS

    def extract(self, path: Path, preferred_size: int = DEFAULT_ICON_SIZE) -> IconImage | IconError:
        """ファイルからアイコンを抽出する

        Args:
            path: 対象ファイルのパス
            preferred_size: 希望するアイコンサイズ（ピクセル）

        Returns:
            抽出したアイコン画像。失敗時はIconError
        """
        if not self.can_extract(path):
            return IconError(ErrorKind.UNSUPPORTED_FORMAT, f"未対応の拡張子です: {path.suffix or '(なし)'}")

        if path.suffix.lower() in EXECUTABLE_EXTENSIONS:
            return self._extract_from_executable(path, preferred_size)
        return self._decode_image_file(path, preferred_size)

    def _extract_from_executable(self, path: Path, preferred_size: int) -> IconImage | IconError:
        """実行ファイルのアイコンリソースを抽出する"""
        # icoextract は BytesIO をサポートしていないため一時ファイルを使用
        with tempfile.NamedTemporaryFile(suffix=".ico", delete=False) as tmp:
            tmp_ico_path = Path(tmp.name)

        try:
            extractor = IcoExtractor(str(path))
            extractor.export_icon(str(tmp_ico_path))
            return self._decode_image_file(tmp_ico_path, preferred_size)
        except NoIconsAvailableError:
            return IconError(ErrorKind.NO_EMBEDDED_ICON, f"アイコンリソースがありません: {path}")
        except OSError as e:
            return IconError(ErrorKind.FILE_UNREADABLE, f"{path}: {e}")
        except Exception as e:
            # その他のエラー（破損したPE等）
            return IconError(ErrorKind.CORRUPT_RESOURCE, f"{path}: {e}")
        finally:
            if tmp_ico_path.exists():
                tmp_ico_path.unlink()

    def _decode_image_file(self, path: Path, preferred_size: int) -> IconImage | IconError:
        """ICO/ビットマップをデコードしてPNGに変換する"""
        try:
            with Image.open(path) as img:
                sizes = img.info.get("sizes")
                if sizes:
                    # ICOファイルには複数サイズが含まれている場合がある
                    img.size = select_nearest_size(sizes, preferred_size)
                elif getattr(img, "n_frames", 1) > 1:
                    frame_sizes = []
                    for frame in range(img.n_frames):
                        img.seek(frame)
                        frame_sizes.append(img.size)
                    img.seek(frame_sizes.index(select_nearest_size(frame_sizes, preferred_size)))

                img.load()
                rgba = img.convert("RGBA")

            buffer = io.BytesIO()
            rgba.save(buffer, "PNG")
        except (FileNotFoundError, PermissionError, IsADirectoryError) as e:
            return IconError(ErrorKind.FILE_UNREADABLE, f"{path}: {e}")
        except (UnidentifiedImageError, Image.DecompressionBombError) as e:
            return IconError(ErrorKind.CORRUPT_RESOURCE, f"{path}: {e}")
        except (OSError, ValueError, SyntaxError) as e:
            # 途中で切れたファイル等
            return IconError(ErrorKind.CORRUPT_RESOURCE, f"{path}: {e}")

        return IconImage(data=buffer.getvalue(), format=ImageFormat.PNG, size=max(rgba.size))
