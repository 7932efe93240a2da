"""カスタムアイコン保存のテスト"""

from __future__ import annotations

import io
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from iconscope.custom import (
    CustomIcon,
    CustomIconError,
    CustomIconStore,
    get_custom_icons_dir,
    sanitize_file_name,
)
from iconscope.types import ImageFormat, Provenance


def png_bytes(size: int = 32) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (size, size), (255, 128, 0, 255)).save(buffer, "PNG")
    return buffer.getvalue()


@pytest.fixture
def store(tmp_path: Path) -> CustomIconStore:
    return CustomIconStore(tmp_path / "custom_icons")


class TestSanitizeFileName:
    """ファイル名変換のテスト"""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            pytest.param("AnyDesk", "AnyDesk", id="正常系: 英数字のみ"),
            pytest.param("7-Zip 23.01 (x64)", "7-Zip_23_01__x64_", id="正常系: 空白と記号"),
            pytest.param("Notepad++", "Notepad__", id="正常系: 記号"),
            pytest.param("a/b\\c", "a_b_c", id="正常系: パス区切り"),
        ],
    )
    def test_sanitize(self, name: str, expected: str) -> None:
        """英数字・ハイフン・アンダースコア以外を置き換える"""
        assert sanitize_file_name(name) == expected


def test_default_directory(tmp_path: Path, mocker) -> None:
    """デフォルトの保存先はデータディレクトリ配下"""
    mocker.patch("iconscope.custom.get_data_dir", return_value=tmp_path)
    assert get_custom_icons_dir() == tmp_path / "custom_icons"


class TestCustomIcon:
    """CustomIconのテスト"""

    def test_to_resolved(self) -> None:
        """取得元はCUSTOMになる"""
        icon = CustomIcon("AnyDesk", b"data", ImageFormat.PNG, 32, MagicMock(), "/img/anydesk.png")

        resolved = icon.to_resolved()

        assert resolved.provenance is Provenance.CUSTOM
        assert resolved.source == "/img/anydesk.png"
        assert resolved.data == b"data"

    def test_to_resolved_without_source_path(self) -> None:
        """登録元がなければプログラム名を取得元にする"""
        icon = CustomIcon("AnyDesk", b"data", ImageFormat.PNG, 32, MagicMock())
        assert icon.to_resolved().source == "custom:AnyDesk"


class TestCustomIconStore:
    """CustomIconStoreのテスト"""

    def test_register_and_lookup(self, store: CustomIconStore) -> None:
        """登録したアイコンを完全一致で参照できる"""
        data = png_bytes(48)

        icon = store.register("AnyDesk", data, source_path="/img/anydesk.png")

        assert icon.format is ImageFormat.PNG
        assert icon.size == 48
        assert store.lookup("AnyDesk") == icon
        assert store.lookup("anydesk") is None
        assert store.path_for("AnyDesk").exists()

    def test_file_format(self, store: CustomIconStore) -> None:
        """1プログラム1ファイルのJSONとして保存される"""
        store.register("AnyDesk", png_bytes(), source_path="/img/anydesk.png")

        saved = json.loads(store.path_for("AnyDesk").read_text(encoding="utf-8"))

        assert saved["program_name"] == "AnyDesk"
        assert saved["icon_path"] == "/img/anydesk.png"
        assert saved["format"] == "png"
        assert set(saved) == {"program_name", "icon_path", "icon_data", "format", "size", "created_at"}

    def test_register_svg(self, store: CustomIconStore) -> None:
        """SVGも登録できる"""
        svg = b'<svg xmlns="http://www.w3.org/2000/svg"/>'
        assert store.register("Tool", svg).format is ImageFormat.SVG

    def test_persists_across_instances(self, store: CustomIconStore) -> None:
        """別インスタンスから読み込める"""
        store.register("AnyDesk", png_bytes())

        reopened = CustomIconStore(store.directory)

        icon = reopened.lookup("AnyDesk")
        assert icon is not None
        assert icon.data == store.lookup("AnyDesk").data

    def test_register_replaces_existing(self, store: CustomIconStore) -> None:
        """同じ名前の登録は置き換えられる"""
        store.register("AnyDesk", png_bytes(16))
        store.register("AnyDesk", png_bytes(64))

        assert store.lookup("AnyDesk").size == 64
        assert len(store.list_icons()) == 1

    def test_sanitized_name_collision(self, store: CustomIconStore) -> None:
        """同じファイル名になる別名の登録は上書きされる"""
        store.register("App 1", png_bytes())
        store.register("App_1", png_bytes())

        assert store.lookup("App 1") is None
        assert store.lookup("App_1") is not None
        assert [icon.program_name for icon in store.list_icons()] == ["App_1"]

    @pytest.mark.parametrize(
        ("name", "data"),
        [
            pytest.param("", png_bytes(), id="異常系: 空の名前"),
            pytest.param("   ", png_bytes(), id="異常系: 空白のみの名前"),
            pytest.param("AnyDesk", b"not an image", id="異常系: 画像でない"),
            pytest.param("AnyDesk", b"", id="異常系: 空のデータ"),
        ],
    )
    def test_register_invalid(self, store: CustomIconStore, name: str, data: bytes) -> None:
        """不正な登録はCustomIconError"""
        with pytest.raises(CustomIconError):
            store.register(name, data)

        assert not store.directory.exists() or not any(store.directory.iterdir())

    def test_register_write_failure(self, tmp_path: Path) -> None:
        """保存に失敗した場合はCustomIconError"""
        blocker = tmp_path / "blocker"
        blocker.write_text("file")
        store = CustomIconStore(blocker / "custom_icons")

        with pytest.raises(CustomIconError, match="保存できません"):
            store.register("AnyDesk", png_bytes())

        assert store.lookup("AnyDesk") is None

    def test_remove(self, store: CustomIconStore) -> None:
        """削除するとファイルと索引から消える"""
        store.register("AnyDesk", png_bytes())

        assert store.remove("AnyDesk") is True
        assert store.lookup("AnyDesk") is None
        assert not store.path_for("AnyDesk").exists()

    def test_remove_unregistered(self, store: CustomIconStore) -> None:
        """登録がなければFalse"""
        assert store.remove("AnyDesk") is False

    def test_remove_failure(self, store: CustomIconStore, mocker) -> None:
        """ファイルを削除できない場合はCustomIconErrorで、索引は変わらない"""
        store.register("AnyDesk", png_bytes())
        mocker.patch.object(Path, "unlink", side_effect=PermissionError("locked"))

        with pytest.raises(CustomIconError, match="削除できません"):
            store.remove("AnyDesk")

        assert store.lookup("AnyDesk") is not None

    def test_list_icons_sorted(self, store: CustomIconStore) -> None:
        """大文字小文字を区別せず名前順に並ぶ"""
        for name in ["zoom", "AnyDesk", "Blender"]:
            store.register(name, png_bytes())

        assert [icon.program_name for icon in store.list_icons()] == ["AnyDesk", "Blender", "zoom"]

    def test_corrupt_file_is_skipped(self, store: CustomIconStore) -> None:
        """破損したファイルは警告して読み飛ばす"""
        store.register("AnyDesk", png_bytes())
        (store.directory / "broken.json").write_text("{not json", encoding="utf-8")
        (store.directory / "partial.json").write_text('{"program_name": "x"}', encoding="utf-8")
        logger = MagicMock()

        reopened = CustomIconStore(store.directory, logger=logger)

        assert [icon.program_name for icon in reopened.list_icons()] == ["AnyDesk"]
        assert logger.warning.call_count == 2

    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        """ディレクトリがなければ空"""
        store = CustomIconStore(tmp_path / "missing")

        assert store.list_icons() == []
        assert store.is_loaded

    def test_no_io_after_load(self, store: CustomIconStore) -> None:
        """読み込み後の参照ではファイルを読まない"""
        store.register("AnyDesk", png_bytes())

        with patch.object(Path, "read_text", side_effect=AssertionError("unexpected read")):
            assert store.lookup("AnyDesk") is not None
            assert store.lookup("Missing") is None

    def test_reload(self, store: CustomIconStore) -> None:
        """reloadで外部の変更を取り込む"""
        store.lookup("AnyDesk")
        CustomIconStore(store.directory).register("AnyDesk", png_bytes())

        assert store.lookup("AnyDesk") is None
        store.reload()
        assert not store.is_loaded
        assert store.lookup("AnyDesk") is not None
