"""CLIエントリポイントのテスト"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image
from click.testing import Result
from typer.testing import CliRunner

from iconscope.cli import app

runner = CliRunner()


def write_ico(path: Path) -> Path:
    Image.new("RGBA", (64, 64), (255, 0, 0, 255)).save(path, format="ICO", sizes=[(16, 16), (32, 32), (48, 48)])
    return path


class CliEnv:
    """CLIテスト用の設定ファイルとキャッシュファイル"""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path
        self.cache_file = tmp_path / "cache" / "icon_cache.json"
        self.custom_dir = tmp_path / "custom_icons"
        self.config_file = tmp_path / "iconscope.yaml"
        self.config_file.write_text(
            "remote:\n"
            "  enabled: false\n"
            "custom_icons:\n"
            f"  directory: {self.custom_dir.as_posix()}\n",
            encoding="utf-8",
        )

    def invoke(self, *args: str, answer: str | None = None) -> Result:
        return runner.invoke(app, ["--config", str(self.config_file), *args], input=answer)

    def cached_entries(self) -> dict[str, list]:
        return json.loads(self.cache_file.read_text(encoding="utf-8"))["tiers"]


@pytest.fixture
def env(tmp_path: Path) -> Iterator[CliEnv]:
    cli_env = CliEnv(tmp_path)
    with patch("iconscope.cli.get_cache_file_path", return_value=cli_env.cache_file):
        yield cli_env


class TestMainCommand:
    """メインコマンドのテスト"""

    @pytest.mark.parametrize(
        ("args", "expected_in_output"),
        [
            pytest.param(["--help"], "アイコン", id="正常系: ヘルプ表示"),
            pytest.param(["--version"], "iconscope 0.1.0", id="正常系: バージョン表示"),
        ],
    )
    def test_main_options(self, args: list[str], expected_in_output: str) -> None:
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert expected_in_output in result.output

    @pytest.mark.parametrize(
        "content",
        [
            pytest.param("cache:\n  local_ttl_hours: 0\n", id="異常系: TTLが範囲外"),
            pytest.param("cache: [unclosed\n", id="異常系: YAML構文エラー"),
        ],
    )
    def test_invalid_config(self, tmp_path: Path, content: str) -> None:
        """不正な設定ファイルは入力エラーで終了"""
        config_file = tmp_path / "bad.yaml"
        config_file.write_text(content, encoding="utf-8")

        result = runner.invoke(app, ["--config", str(config_file), "cache", "info"])

        assert result.exit_code == 2
        assert "Error" in result.output

    def test_missing_config(self, tmp_path: Path) -> None:
        """存在しない設定ファイルは入力エラーで終了"""
        result = runner.invoke(app, ["--config", str(tmp_path / "missing.yaml"), "cache", "info"])
        assert result.exit_code == 2


class TestResolveCommand:
    """resolveコマンドのテスト"""

    def test_resolve_local_icon(self, env: CliEnv) -> None:
        """記録されたアイコンファイルから解決し、画像を保存する"""
        ico = write_ico(env.root / "tool.ico")
        output = env.root / "tool.png"

        result = env.invoke("resolve", "My Tool", "--path", str(ico), "-o", str(output))

        assert result.exit_code == 0, result.output
        assert "LocalExtraction" in result.output
        assert output.read_bytes().startswith(b"\x89PNG")
        assert len(env.cached_entries()["local"]) == 1

    def test_resolve_uses_persisted_cache(self, env: CliEnv) -> None:
        """2回目の実行は保存されたキャッシュから返す"""
        ico = write_ico(env.root / "tool.ico")
        env.invoke("resolve", "My Tool", "--path", str(ico))

        result = env.invoke("resolve", "My Tool", "--path", str(ico), "-vv")

        assert result.exit_code == 0, result.output
        assert "My Tool: LocalExtraction (cache)" in result.output

    def test_resolve_unknown_program(self, env: CliEnv) -> None:
        """取得できない場合は汎用アイコンを返す"""
        result = env.invoke("resolve", "AnyDesk", "--path", str(env.root / "missing.exe"), "--type", "update")

        assert result.exit_code == 0, result.output
        assert "Generic" in result.output
        assert len(env.cached_entries()["fallback"]) == 1

    def test_resolve_verbose_logs_step_failures(self, env: CliEnv) -> None:
        """-vで各ステップの失敗を表示する"""
        missing = env.root / "missing.exe"

        result = env.invoke("resolve", "AnyDesk", "--path", str(missing), "-v")

        assert "[step 3] AnyDesk -> NotFound" in result.output

    def test_resolve_writes_log_file(self, env: CliEnv) -> None:
        """--log-fileでログをファイルに出力する"""
        log_file = env.root / "resolve.log"

        env.invoke("resolve", "AnyDesk", "--path", str(env.root / "missing.exe"), "--log-file", str(log_file))

        assert "[step 3] AnyDesk -> NotFound" in log_file.read_text(encoding="utf-8")

    def test_resolve_blank_name(self, env: CliEnv) -> None:
        """空のプログラム名は入力エラーで終了"""
        result = env.invoke("resolve", "   ")
        assert result.exit_code == 2


class TestWarmCommand:
    """warmコマンドのテスト"""

    def test_warm(self, env: CliEnv) -> None:
        """レコード一覧をまとめて解決しキャッシュする"""
        ico = write_ico(env.root / "tool.ico")
        records = env.root / "programs.json"
        records.write_text(
            json.dumps(
                {
                    "programs": [
                        {"name": "My Tool", "icon_path": str(ico), "program_type": "Application"},
                        {"name": "AnyDesk", "publisher": "AnyDesk Software GmbH"},
                        {"name": ""},
                    ]
                }
            ),
            encoding="utf-8",
        )

        result = env.invoke("warm", str(records))

        assert result.exit_code == 0, result.output
        assert "LocalExtraction" in result.output
        assert "Generic" in result.output
        tiers = env.cached_entries()
        assert len(tiers["local"]) == 1
        assert len(tiers["fallback"]) == 1

    @pytest.mark.parametrize(
        "content",
        [
            pytest.param("{not json", id="異常系: JSON構文エラー"),
            pytest.param('{"programs": "none"}', id="異常系: 配列でない"),
            pytest.param("[1, 2]", id="異常系: レコードでない要素"),
        ],
    )
    def test_warm_invalid_records(self, env: CliEnv, content: str) -> None:
        """不正なレコードファイルは入力エラーで終了"""
        records = env.root / "programs.json"
        records.write_text(content, encoding="utf-8")

        result = env.invoke("warm", str(records))

        assert result.exit_code == 2

    def test_warm_missing_file(self, env: CliEnv) -> None:
        """存在しないレコードファイルは入力エラーで終了"""
        result = env.invoke("warm", str(env.root / "missing.json"))
        assert result.exit_code == 2


class TestCacheCommand:
    """cacheサブコマンドのテスト"""

    @pytest.fixture
    def populated(self, env: CliEnv) -> CliEnv:
        """ローカル層とフォールバック層に1件ずつ格納する"""
        ico = write_ico(env.root / "tool.ico")
        env.invoke("resolve", "My Tool", "--path", str(ico))
        env.invoke("resolve", "AnyDesk")
        return env

    def test_cache_info(self, populated: CliEnv) -> None:
        """層ごとの統計を表示する"""
        result = populated.invoke("cache", "info")

        assert result.exit_code == 0, result.output
        assert "local" in result.output
        assert "fallback" in result.output

    def test_cache_info_single_tier(self, populated: CliEnv) -> None:
        """--tierで表示対象を絞り込む"""
        result = populated.invoke("cache", "info", "--tier", "fallback")

        assert result.exit_code == 0, result.output
        assert "fallback" in result.output

    def test_cache_clean_force(self, populated: CliEnv) -> None:
        """--forceで確認なしにすべて削除する"""
        result = populated.invoke("cache", "clean", "--force")

        assert result.exit_code == 0, result.output
        assert populated.cached_entries() == {"local": [], "fallback": []}

    def test_cache_clean_tier(self, populated: CliEnv) -> None:
        """指定した層だけを削除する"""
        result = populated.invoke("cache", "clean", "--tier", "local", "-f")

        assert result.exit_code == 0, result.output
        tiers = populated.cached_entries()
        assert tiers["local"] == []
        assert len(tiers["fallback"]) == 1

    def test_cache_clean_cancelled(self, populated: CliEnv) -> None:
        """確認で拒否すると削除しない"""
        result = populated.invoke("cache", "clean", answer="n\n")

        assert result.exit_code == 0
        assert "キャンセル" in result.output
        assert len(populated.cached_entries()["local"]) == 1

    def test_cache_clean_confirmed(self, populated: CliEnv) -> None:
        """確認で承認すると削除する"""
        result = populated.invoke("cache", "clean", answer="y\n")

        assert result.exit_code == 0
        assert populated.cached_entries() == {"local": [], "fallback": []}

    def test_corrupt_cache_file_is_ignored(self, env: CliEnv) -> None:
        """破損したキャッシュファイルは警告して無視する"""
        env.cache_file.parent.mkdir(parents=True)
        env.cache_file.write_text("{broken", encoding="utf-8")

        result = env.invoke("resolve", "AnyDesk")

        assert result.exit_code == 0, result.output
        assert "警告" in result.output
        assert len(env.cached_entries()["fallback"]) == 1


class TestCustomCommand:
    """customサブコマンドのテスト"""

    def test_set_list_remove(self, env: CliEnv) -> None:
        """登録・一覧・削除ができ、登録したアイコンが解決に使われる"""
        image = env.root / "anydesk.png"
        Image.new("RGBA", (48, 48), (0, 200, 0, 255)).save(image)

        result = env.invoke("custom", "set", "AnyDesk", str(image))
        assert result.exit_code == 0, result.output
        assert (env.custom_dir / "AnyDesk.json").exists()

        result = env.invoke("custom", "list")
        assert result.exit_code == 0
        assert "AnyDesk" in result.output

        result = env.invoke("resolve", "AnyDesk")
        assert "Custom" in result.output

        result = env.invoke("custom", "remove", "AnyDesk")
        assert result.exit_code == 0
        assert not (env.custom_dir / "AnyDesk.json").exists()

        result = env.invoke("resolve", "AnyDesk")
        assert "Generic" in result.output

    def test_set_evicts_cached_icon(self, env: CliEnv) -> None:
        """登録すると保存済みキャッシュのエントリを削除する"""
        env.invoke("resolve", "AnyDesk")
        image = env.root / "anydesk.png"
        Image.new("RGBA", (32, 32)).save(image)

        env.invoke("custom", "set", "AnyDesk", str(image))

        assert env.cached_entries()["fallback"] == []

    def test_list_empty(self, env: CliEnv) -> None:
        """登録がない場合はその旨を表示する"""
        result = env.invoke("custom", "list")

        assert result.exit_code == 0
        assert "登録されていません" in result.output

    def test_set_invalid_image(self, env: CliEnv) -> None:
        """画像でないファイルはエラー終了"""
        text = env.root / "notes.txt"
        text.write_text("not an image")

        result = env.invoke("custom", "set", "AnyDesk", str(text))

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_set_missing_image(self, env: CliEnv) -> None:
        """存在しない画像は入力エラーで終了"""
        result = env.invoke("custom", "set", "AnyDesk", str(env.root / "missing.png"))
        assert result.exit_code == 2

    def test_remove_unregistered(self, env: CliEnv) -> None:
        """登録されていない名前の削除はエラー終了"""
        result = env.invoke("custom", "remove", "AnyDesk")

        assert result.exit_code == 1
        assert "登録されていません" in result.output
