"""インストール情報に記録されたパス文字列の解決

レジストリのDisplayIcon等に記録されたパスは、引用符・アイコンインデックス・
環境変数プレースホルダを含むことがある。このモジュールはそれらを正規化し、
実在するファイルの正規パスに解決する。
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping, Sequence
from pathlib import Path, PureWindowsPath

# "app.exe,0" や "app.exe,-101" 形式のアイコンインデックス
_ICON_INDEX_PATTERN = re.compile(r",\s*-?\d+\s*$")
_PERCENT_VAR_PATTERN = re.compile(r"%([^%\s]+)%")


def _lookup_env(name: str, environ: Mapping[str, str]) -> str | None:
    """環境変数を大文字小文字を区別せずに参照する"""
    value = environ.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in environ.items():
        if key.lower() == lowered:
            return candidate
    return None


def expand_placeholders(text: str, environ: Mapping[str, str] | None = None) -> str:
    """%VAR%、$VAR、${VAR} 形式のプレースホルダを展開する

    未定義の変数はそのまま残す。

    Args:
        text: 展開対象の文字列
        environ: 環境変数（Noneの場合はos.environ）

    Returns:
        展開後の文字列
    """
    env = os.environ if environ is None else environ

    def replace(match: re.Match[str]) -> str:
        value = _lookup_env(match.group(1), env)
        return value if value is not None else match.group(0)

    expanded = _PERCENT_VAR_PATTERN.sub(replace, text)

    if environ is None:
        return os.path.expandvars(expanded)

    def replace_dollar(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        value = _lookup_env(name, env)
        return value if value is not None else match.group(0)

    return re.sub(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)", replace_dollar, expanded)


def normalize_raw_path(raw_path: str, environ: Mapping[str, str] | None = None) -> str:
    """生のパス文字列を字句的に正規化する（I/Oなし）

    Args:
        raw_path: インストール情報に記録されたパス文字列
        environ: 環境変数（Noneの場合はos.environ）

    Returns:
        正規化したパス文字列。空入力の場合は空文字列
    """
    path = raw_path.strip().strip("\"'").strip()
    path = _ICON_INDEX_PATTERN.sub("", path).strip().strip("\"'")
    if not path:
        return ""

    path = expand_placeholders(path, environ)
    path = os.path.expanduser(path)
    path = path.replace("\\", os.sep).replace("/", os.sep)
    return os.path.normpath(path)


def is_absolute_path(path: str) -> bool:
    """ネイティブ形式またはWindows形式の絶対パスかを判定する"""
    return os.path.isabs(path) or PureWindowsPath(path).is_absolute()


def default_search_roots(environ: Mapping[str, str] | None = None) -> list[Path]:
    """相対パスの探索先（Windowsシステムディレクトリ）を返す"""
    env = os.environ if environ is None else environ
    system_root = _lookup_env("SystemRoot", env) or _lookup_env("WINDIR", env)
    if not system_root:
        return []
    root = Path(system_root)
    return [root / "System32", root]


class PathResolver:
    """パス文字列を実在するファイルの正規パスに解決するクラス

    使用例:
        >>> resolver = PathResolver()
        >>> resolver.resolve('"%ProgramFiles%/7-Zip/7zFM.exe",0')
        WindowsPath('C:/Program Files/7-Zip/7zFM.exe')
    """

    def __init__(
        self,
        search_roots: Sequence[Path] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """PathResolverを初期化する

        Args:
            search_roots: 相対パスの探索先（Noneの場合はシステムディレクトリ）
            environ: 環境変数（テスト用の依存性注入。Noneの場合はos.environ）
        """
        self._environ = environ
        self._search_roots = (
            list(search_roots) if search_roots is not None else default_search_roots(environ)
        )

    def resolve(self, raw_path: str | None) -> Path | None:
        """パス文字列を解決する

        存在しないパスは一般的な結果であり、例外ではなくNoneを返す。

        Args:
            raw_path: インストール情報に記録されたパス文字列

        Returns:
            実在するファイルの正規パス。見つからない場合はNone
        """
        if not raw_path:
            return None

        normalized = normalize_raw_path(raw_path, self._environ)
        if not normalized:
            return None

        if is_absolute_path(normalized):
            candidates = [Path(normalized)]
        else:
            candidates = [root / normalized for root in self._search_roots]

        for candidate in candidates:
            if _is_file(candidate):
                return Path(os.path.abspath(candidate))
        return None


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False
