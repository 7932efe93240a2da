"""ベンダー管理配布アプリの実行ファイル探索

ベンダー管理配布（VF）で展開されたプログラムはレジストリにアイコンパスを
持たないことがあるため、Program Files配下からそれらしい実行ファイルを探す。
走査は深さ・エントリ数・候補ディレクトリ数で上限を設ける。
"""

from __future__ import annotations

import itertools
import os
from collections import deque
from collections.abc import Iterator, Mapping, Sequence
from enum import Enum
from pathlib import Path

from iconscope.resolver.matching import names_match, words_match

DEFAULT_MAX_DEPTH = 2
DEFAULT_MAX_ENTRIES = 256
DEFAULT_MAX_CANDIDATES = 16

# メイン実行ファイルとして扱わないファイル名のキーワード
EXCLUDED_EXECUTABLE_KEYWORDS = ("system", "windows", "install", "setup", "update")


class ArchitectureHint(Enum):
    """探索対象のアーキテクチャ"""

    X64 = "x64"
    X86 = "x86"
    ANY = "any"

    @classmethod
    def from_path(cls, raw_path: str | None) -> ArchitectureHint:
        """記録されたパスからアーキテクチャを推定する

        "Program Files (x86)" を含む場合はx86、"Program Files" のみの場合はx64。
        """
        if not raw_path:
            return cls.ANY
        lowered = raw_path.casefold().replace("/", "\\")
        if "program files (x86)" in lowered or "programfiles(x86)" in lowered:
            return cls.X86
        if "program files" in lowered or "programfiles" in lowered or "programw6432" in lowered:
            return cls.X64
        return cls.ANY


def default_program_roots(
    architecture: ArchitectureHint, environ: Mapping[str, str] | None = None
) -> list[Path]:
    """アーキテクチャに応じたProgram Filesディレクトリを返す"""
    env = os.environ if environ is None else environ
    x64 = env.get("ProgramW6432") or env.get("ProgramFiles") or r"C:\Program Files"
    x86 = env.get("ProgramFiles(x86)") or r"C:\Program Files (x86)"

    match architecture:
        case ArchitectureHint.X64:
            roots = [x64]
        case ArchitectureHint.X86:
            roots = [x86]
        case _:
            roots = [x64, x86]
    return [Path(root) for root in dict.fromkeys(roots)]


def is_excluded_executable(file_name: str) -> bool:
    """インストーラ・アンインストーラ等の補助実行ファイルかを判定する"""
    lowered = file_name.casefold()
    return any(keyword in lowered for keyword in EXCLUDED_EXECUTABLE_KEYWORDS)


class VendorTreeScanner:
    """Program Files配下から実行ファイルを探すクラス

    使用例:
        >>> scanner = VendorTreeScanner()
        >>> scanner.find_executable("AnyDesk", "philandro Software GmbH", ArchitectureHint.ANY)
        WindowsPath('C:/Program Files (x86)/AnyDesk/AnyDesk.exe')
    """

    def __init__(
        self,
        roots: Sequence[Path] | None = None,
        environ: Mapping[str, str] | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
    ) -> None:
        """VendorTreeScannerを初期化する

        Args:
            roots: 探索ルート（指定時はアーキテクチャに関係なく使用する）
            environ: 環境変数（Noneの場合はos.environ）
            max_depth: 候補ディレクトリ内の最大探索深さ
            max_entries: 1ディレクトリあたりの最大読み取りエントリ数
            max_candidates: 調べる候補ディレクトリの最大数
        """
        self._roots = list(roots) if roots is not None else None
        self._environ = environ
        self.max_depth = max_depth
        self.max_entries = max_entries
        self.max_candidates = max_candidates

    def roots_for(self, architecture: ArchitectureHint) -> list[Path]:
        """探索ルートを返す"""
        if self._roots is not None:
            return list(self._roots)
        return default_program_roots(architecture, self._environ)

    def find_executable(
        self,
        program_name: str,
        publisher: str | None = None,
        architecture: ArchitectureHint = ArchitectureHint.ANY,
    ) -> Path | None:
        """プログラムの実行ファイルを探す

        Args:
            program_name: プログラム表示名
            publisher: 発行元
            architecture: アーキテクチャのヒント

        Returns:
            見つかった実行ファイルのパス。見つからない場合はNone
        """
        for directory in self.candidate_directories(program_name, publisher, architecture):
            executable = self._find_in_directory(directory, program_name)
            if executable is not None:
                return executable
        return None

    def candidate_directories(
        self,
        program_name: str,
        publisher: str | None = None,
        architecture: ArchitectureHint = ArchitectureHint.ANY,
    ) -> list[Path]:
        """候補ディレクトリを優先順に返す

        名前に一致するディレクトリを先に、発行元のみに一致するディレクトリを後に並べる。
        """
        name_matches: list[Path] = []
        publisher_matches: list[Path] = []

        for root in self.roots_for(architecture):
            for entry in self._list_directory(root):
                if not _is_dir(entry):
                    continue
                if names_match(entry.name, program_name):
                    name_matches.append(entry)
                elif publisher and words_match(publisher, entry.name):
                    publisher_matches.append(entry)

        return (name_matches + publisher_matches)[: self.max_candidates]

    def _find_in_directory(self, directory: Path, program_name: str) -> Path | None:
        """候補ディレクトリ内からメイン実行ファイルを選ぶ

        ファイル名がプログラム名に一致するものを優先し、なければ
        補助実行ファイル以外で最初に見つかったものを返す。
        """
        fallback: Path | None = None
        for executable in self._walk_executables(directory):
            if is_excluded_executable(executable.name):
                continue
            if names_match(executable.stem, program_name):
                return executable
            if fallback is None:
                fallback = executable
        return fallback

    def _walk_executables(self, directory: Path) -> Iterator[Path]:
        """幅優先で.exeファイルを列挙する（浅い階層が先）"""
        queue: deque[tuple[Path, int]] = deque([(directory, 0)])
        while queue:
            current, depth = queue.popleft()
            for entry in self._list_directory(current):
                if entry.suffix.lower() == ".exe" and _is_file(entry):
                    yield entry
                elif depth < self.max_depth and _is_dir(entry):
                    queue.append((entry, depth + 1))

    def _list_directory(self, directory: Path) -> list[Path]:
        """ディレクトリを上限付きで読み取り、名前順に並べる

        読み取れないディレクトリは空として扱う。
        """
        try:
            entries = list(itertools.islice(directory.iterdir(), self.max_entries))
        except OSError:
            return []
        return sorted(entries, key=lambda p: p.name.casefold())


def _is_dir(path: Path) -> bool:
    try:
        return path.is_dir() and not path.is_symlink()
    except OSError:
        return False


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False
