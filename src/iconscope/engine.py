"""アイコン解決エンジン

プログラムのメタデータから表示用アイコンを決定する。
カスタムアイコン、キャッシュ、ローカル抽出、ベンダーツリー走査、
リモートフォールバック、汎用アイコンの順に試行し、最初に成功した結果を返す。

同一キャッシュキーに対する同時リクエストは1回の解決処理を共有する。
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from types import TracebackType

from iconscope.cache import CacheKey, CacheScope, CacheStats, CacheStore, CacheTier
from iconscope.config import EngineConfig, get_default_config
from iconscope.custom import CustomIconStore
from iconscope.fallback.generic import GenericIconProvider
from iconscope.fallback.remote import RemoteFallbackProvider
from iconscope.logger import ResolutionLogger
from iconscope.resolver.icon import IconExtractor, IconExtractorProtocol
from iconscope.resolver.path import PathResolver
from iconscope.resolver.vendor import ArchitectureHint, VendorTreeScanner
from iconscope.types import (
    ErrorKind,
    IconError,
    IconImage,
    IconRequest,
    InvalidRequestError,
    Provenance,
    ResolvedIcon,
    StepResult,
    StepStatus,
)

# 戦略ステップ番号（ログ出力用）
STEP_CUSTOM = 1
STEP_CACHE = 2
STEP_LOCAL_EXTRACTION = 3
STEP_VENDOR_TREE_SCAN = 4
STEP_REMOTE_FALLBACK = 5
STEP_GENERIC = 6

Strategy = Callable[[IconRequest], Awaitable[StepResult]]


def _to_step_result(
    result: IconImage | IconError, provenance: Provenance, source: str
) -> StepResult:
    match result:
        case IconImage():
            return StepResult.success(ResolvedIcon.from_image(result, provenance, source))
        case IconError():
            return StepResult.fail(result, attempted=source)


class IconResolutionEngine:
    """アイコン解決エンジン

    キャッシュストアおよび各取得コンポーネントはコンストラクタで受け取る。
    省略したものは設定から作成する。

    使用例:
        >>> async with IconResolutionEngine() as engine:
        ...     icon = await engine.resolve_icon(IconRequest(name="7-Zip", icon_path=r"C:\\7-Zip\\7zFM.exe"))
        ...     icon.provenance
        <Provenance.LOCAL_EXTRACTION: 'LocalExtraction'>
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        cache_store: CacheStore | None = None,
        path_resolver: PathResolver | None = None,
        extractor: IconExtractorProtocol | None = None,
        vendor_scanner: VendorTreeScanner | None = None,
        remote_provider: RemoteFallbackProvider | None = None,
        generic_provider: GenericIconProvider | None = None,
        custom_store: CustomIconStore | None = None,
        logger: ResolutionLogger | None = None,
    ) -> None:
        """IconResolutionEngineを初期化する

        Args:
            config: エンジン設定（Noneの場合はデフォルト設定）
            cache_store: キャッシュストア
            path_resolver: パス解決
            extractor: アイコン抽出
            vendor_scanner: ベンダーツリー走査
            remote_provider: リモートフォールバック
            generic_provider: 汎用アイコン
            custom_store: カスタムアイコンストア
            logger: ロガー
        """
        self._config = config or get_default_config()
        self._logger = logger or ResolutionLogger()
        self._cache = (
            cache_store if cache_store is not None else CacheStore.from_config(self._config.cache)
        )
        self._path_resolver = path_resolver or PathResolver()
        self._extractor = extractor or IconExtractor()
        self._vendor_scanner = vendor_scanner or VendorTreeScanner(
            max_depth=self._config.scan.max_depth,
            max_entries=self._config.scan.max_entries,
            max_candidates=self._config.scan.max_candidates,
        )
        self._remote = remote_provider or RemoteFallbackProvider(
            timeout=self._config.remote.timeout,
            nominal_size=self._config.preferred_size,
        )
        self._generic = generic_provider or GenericIconProvider()
        self._custom_store = custom_store or CustomIconStore(
            self._config.custom_icons.directory, logger=self._logger
        )
        self._in_flight: dict[CacheKey, asyncio.Task[ResolvedIcon]] = {}
        self._strategies: list[tuple[int, Strategy]] = [
            (STEP_LOCAL_EXTRACTION, self._try_local_extraction),
            (STEP_VENDOR_TREE_SCAN, self._try_vendor_tree_scan),
            (STEP_REMOTE_FALLBACK, self._try_remote_fallback),
        ]

    async def __aenter__(self) -> IconResolutionEngine:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """内部で作成したHTTPクライアントを閉じる"""
        await self._remote.aclose()

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def cache_store(self) -> CacheStore:
        return self._cache

    @property
    def custom_store(self) -> CustomIconStore:
        return self._custom_store

    @property
    def in_flight_count(self) -> int:
        """解決処理中のキャッシュキー数"""
        return len(self._in_flight)

    async def resolve_icon(self, request: IconRequest) -> ResolvedIcon:
        """プログラムのアイコンを解決する

        名前が空でないリクエストに対しては必ずアイコンを返す。
        各ステップの失敗はログに記録され、呼び出し側には伝播しない。

        Args:
            request: アイコン解決リクエスト

        Returns:
            解決済みアイコン

        Raises:
            InvalidRequestError: プログラム名が空の場合
        """
        if not request.name or not request.name.strip():
            raise InvalidRequestError()

        key = CacheKey.for_request(request)

        if self._config.custom_icons.enabled:
            custom = await self._lookup_custom(request.name)
            if custom is not None:
                self._cache.put(key, custom, CacheTier.LOCAL)
                self._logger.log_resolution(request.name, custom.provenance)
                return custom
        else:
            self._logger.log_step_skip(request.name, STEP_CUSTOM, "カスタムアイコンは無効です")

        # キャッシュ確認と処理中タスクの登録の間にawaitを挟まない
        entry = self._cache.get(key)
        if entry is not None:
            self._logger.log_resolution(request.name, entry.icon.provenance, cache_hit=True)
            return entry.icon

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._resolve_and_store(key, request))
            self._in_flight[key] = task
        else:
            self._logger.debug(f"{request.name}: 処理中の解決を待機します key={key.value}")

        # 呼び出し側のキャンセルで共有タスクを止めない
        return await asyncio.shield(task)

    async def _lookup_custom(self, program_name: str) -> ResolvedIcon | None:
        if self._custom_store.is_loaded:
            custom = self._custom_store.lookup(program_name)
        else:
            custom = await asyncio.to_thread(self._custom_store.lookup, program_name)
        return custom.to_resolved() if custom is not None else None

    async def _resolve_and_store(self, key: CacheKey, request: IconRequest) -> ResolvedIcon:
        try:
            icon = await self._run_strategies(request)
            self._cache.put(key, icon)
            self._logger.log_resolution(request.name, icon.provenance)
            return icon
        finally:
            self._in_flight.pop(key, None)

    async def _run_strategies(self, request: IconRequest) -> ResolvedIcon:
        """ステップ3〜5を順に試行し、すべて失敗した場合は汎用アイコンを返す"""
        for step, strategy in self._strategies:
            try:
                result = await strategy(request)
            except Exception as e:
                result = StepResult.fail(IconError(ErrorKind.UNEXPECTED, f"{type(e).__name__}: {e}"))
            match result.status:
                case StepStatus.SUCCESS if result.icon is not None:
                    return result.icon
                case StepStatus.SKIPPED:
                    self._logger.log_step_skip(request.name, step, result.reason)
                case StepStatus.FAILED if result.error is not None:
                    self._logger.log_step_failure(
                        request.name,
                        step,
                        result.error.kind,
                        result.error.message,
                        path=result.attempted,
                    )

        return self._generic_icon(request)

    async def _try_local_extraction(self, request: IconRequest) -> StepResult:
        if not request.icon_path:
            return StepResult.skip("アイコンパスが記録されていません")

        path = await asyncio.to_thread(self._path_resolver.resolve, request.icon_path)
        if path is None:
            return StepResult.fail(
                IconError(ErrorKind.NOT_FOUND, "ファイルが存在しません"), attempted=request.icon_path
            )

        result = await asyncio.to_thread(self._extractor.extract, path, self._config.preferred_size)
        return _to_step_result(result, Provenance.LOCAL_EXTRACTION, str(path))

    async def _try_vendor_tree_scan(self, request: IconRequest) -> StepResult:
        if not request.vendor_managed:
            return StepResult.skip("ベンダー管理配布ではありません")

        architecture = ArchitectureHint.from_path(request.icon_path)
        executable = await asyncio.to_thread(
            self._vendor_scanner.find_executable, request.name, request.publisher, architecture
        )
        if executable is None:
            return StepResult.fail(
                IconError(ErrorKind.NOT_FOUND, f"実行ファイルが見つかりません（{architecture.value}）")
            )

        result = await asyncio.to_thread(
            self._extractor.extract, executable, self._config.preferred_size
        )
        return _to_step_result(result, Provenance.VENDOR_TREE_SCAN, str(executable))

    async def _try_remote_fallback(self, request: IconRequest) -> StepResult:
        if not self._config.remote.enabled:
            return StepResult.skip("リモートフォールバックは無効です")

        identity = self._remote.lookup(request.name, request.publisher)
        if identity is None:
            return StepResult.fail(IconError(ErrorKind.NOT_FOUND, "既知のアプリケーションに一致しません"))

        result = await self._remote.fetch(identity)
        return _to_step_result(result, Provenance.REMOTE_FALLBACK, identity.url)

    def _generic_icon(self, request: IconRequest) -> ResolvedIcon:
        image = self._generic.get_icon(request.program_type, self._config.preferred_size)
        return ResolvedIcon.from_image(
            image, Provenance.GENERIC, self._generic.source_for(request.program_type)
        )

    def clear_cache(self, scope: CacheScope = CacheScope.BOTH) -> None:
        """キャッシュをクリアする

        Args:
            scope: クリア対象（LOCAL / FALLBACK / BOTH）
        """
        self._cache.clear(scope)
        self._logger.verbose(f"キャッシュをクリアしました: {scope.value}")

    def get_cache_stats(self, scope: CacheScope = CacheScope.BOTH) -> CacheStats:
        """呼び出し時点のキャッシュ統計を返す"""
        return self._cache.stats(scope)

    def register_custom_icon(
        self, program_name: str, image_bytes: bytes, source_path: str | None = None
    ) -> ResolvedIcon:
        """カスタムアイコンを登録する

        登録したプログラム名のキャッシュエントリは削除される。

        Args:
            program_name: プログラム名
            image_bytes: 画像データ
            source_path: 登録元の画像ファイルパス（記録用）

        Returns:
            登録したアイコン

        Raises:
            InvalidRequestError: プログラム名が空の場合
            CustomIconError: 画像として解釈できない、または保存に失敗した場合
        """
        if not program_name.strip():
            raise InvalidRequestError()
        icon = self._custom_store.register(program_name, image_bytes, source_path)
        self._cache.evict_program(program_name)
        return icon.to_resolved()

    def lookup_custom_icon(self, program_name: str) -> ResolvedIcon | None:
        """登録済みのカスタムアイコンを返す"""
        icon = self._custom_store.lookup(program_name)
        return icon.to_resolved() if icon is not None else None

    def remove_custom_icon(self, program_name: str) -> bool:
        """カスタムアイコンを削除する

        削除したプログラム名のキャッシュエントリも削除する。

        Returns:
            削除した場合はTrue
        """
        removed = self._custom_store.remove(program_name)
        if removed:
            self._cache.evict_program(program_name)
        return removed

    def list_custom_icons(self) -> list[tuple[str, ResolvedIcon]]:
        """登録済みのカスタムアイコンを（プログラム名, アイコン）の一覧で返す"""
        return [(icon.program_name, icon.to_resolved()) for icon in self._custom_store.list_icons()]
