"""CLI entry point for iconscope."""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from iconscope import __version__
from iconscope.cache import CacheFileError, CacheScope, CacheStore, get_cache_file_path
from iconscope.config import ConfigError, EngineConfig, get_default_config, load_config
from iconscope.custom import CustomIconError
from iconscope.engine import IconResolutionEngine
from iconscope.logger import LogConfig, ResolutionLogger, VerboseLevel
from iconscope.types import ExitCode, IconRequest, InvalidRequestError, ProgramType, ResolvedIcon

app = typer.Typer(help="インストール済みプログラムのアイコンを解決・キャッシュするCLIツール")
console = Console()


def _format_size(size_bytes: int) -> str:
    """バイト数を人間が読みやすい形式に変換する"""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def _load_engine_config(ctx: typer.Context) -> EngineConfig:
    """--configで指定された設定を読み込む"""
    config_path: Path | None = (ctx.obj or {}).get("config_path")
    if config_path is None:
        return get_default_config()
    try:
        return load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e


def _load_cache_store(config: EngineConfig, logger: ResolutionLogger) -> CacheStore:
    """キャッシュストアを作成し、保存済みのキャッシュを復元する"""
    store = CacheStore.from_config(config.cache)
    if config.cache.persist:
        try:
            restored = store.load(get_cache_file_path())
            logger.debug(f"キャッシュを復元しました: {restored}件")
        except CacheFileError as e:
            logger.warning(str(e))
    return store


def _save_cache_store(config: EngineConfig, store: CacheStore, logger: ResolutionLogger) -> None:
    if not config.cache.persist:
        return
    try:
        store.save(get_cache_file_path())
    except CacheFileError as e:
        logger.warning(str(e))


def _create_logger(verbose: int, log_file: Path | None = None) -> ResolutionLogger:
    level = VerboseLevel(min(verbose, VerboseLevel.DEBUG))
    return ResolutionLogger(LogConfig(verbose_level=level, log_file=log_file))


def _create_engine(
    config: EngineConfig, logger: ResolutionLogger, cache_store: CacheStore | None = None
) -> IconResolutionEngine:
    return IconResolutionEngine(
        config=config,
        cache_store=cache_store,
        logger=logger,
    )


def _icon_table(title: str, icon: ResolvedIcon) -> Table:
    table = Table(title=title, show_header=False)
    table.add_column("項目", style="cyan")
    table.add_column("値", style="white")
    table.add_row("取得元", icon.provenance.value)
    table.add_row("形式", icon.format.value)
    table.add_row("サイズ", f"{icon.size}px")
    table.add_row("データ", _format_size(len(icon.data)))
    table.add_row("ソース", icon.source or "-")
    return table


@app.command()
def resolve(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="プログラム名")],
    publisher: Annotated[str | None, typer.Option(help="発行元")] = None,
    path: Annotated[str | None, typer.Option("--path", help="記録されたアイコンパス")] = None,
    vendor: Annotated[bool, typer.Option("--vendor", help="ベンダー管理配布アプリとして扱う")] = False,
    program_type: Annotated[str, typer.Option("--type", help="プログラム種別")] = "Application",
    output: Annotated[Path | None, typer.Option("-o", "--output", help="画像の出力先")] = None,
    verbose: Annotated[int, typer.Option("-v", "--verbose", count=True, help="詳細ログ出力")] = 0,
    log_file: Annotated[Path | None, typer.Option(help="ログファイル出力先")] = None,
) -> None:
    """1つのプログラムのアイコンを解決する"""
    config = _load_engine_config(ctx)
    request = IconRequest(
        name=name,
        publisher=publisher,
        icon_path=path,
        vendor_managed=vendor,
        program_type=ProgramType.parse(program_type),
    )

    with _create_logger(verbose, log_file) as logger:
        store = _load_cache_store(config, logger)

        async def run() -> ResolvedIcon:
            async with _create_engine(config, logger, store) as engine:
                return await engine.resolve_icon(request)

        try:
            icon = asyncio.run(run())
        except InvalidRequestError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(ExitCode.INVALID_INPUT) from e

        _save_cache_store(config, store, logger)

    console.print(_icon_table(name, icon))

    if output is not None:
        try:
            output.write_bytes(icon.data)
        except OSError as e:
            console.print(f"[red]Error: 画像を書き込めません: {e}[/red]")
            raise typer.Exit(ExitCode.ERROR) from e
        console.print(f"[green]画像を保存しました: {output}[/green]")

    raise typer.Exit(ExitCode.SUCCESS)


def _read_records(records_path: Path) -> list[dict[str, Any]]:
    """プログラムレコードのJSONを読み込む"""
    data = json.loads(records_path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("programs", [])
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError("プログラムレコードの配列である必要があります")
    return data


@app.command()
def warm(
    ctx: typer.Context,
    records_path: Annotated[Path, typer.Argument(help="プログラムレコードのJSONファイル")],
    verbose: Annotated[int, typer.Option("-v", "--verbose", count=True, help="詳細ログ出力")] = 0,
    log_file: Annotated[Path | None, typer.Option(help="ログファイル出力先")] = None,
) -> None:
    """プログラム一覧のアイコンをまとめて解決し、キャッシュに格納する"""
    config = _load_engine_config(ctx)

    try:
        records = _read_records(records_path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: レコードを読み込めません: {e}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e

    requests = [IconRequest.from_record(record) for record in records]
    invalid = sum(1 for request in requests if not request.name.strip())
    requests = [request for request in requests if request.name.strip()]

    with _create_logger(verbose, log_file) as logger:
        store = _load_cache_store(config, logger)
        progress = logger.create_progress(len(requests))

        async def run() -> None:
            async with _create_engine(config, logger, store) as engine:
                progress.start("アイコンを解決中")
                for done in asyncio.as_completed([engine.resolve_icon(r) for r in requests]):
                    icon = await done
                    progress.advance(icon.provenance)
                progress.finish()

        asyncio.run(run())
        _save_cache_store(config, store, logger)
        logger.log_summary("キャッシュ", store.stats())

    table = Table(title="解決結果")
    table.add_column("取得元", style="cyan")
    table.add_column("件数", justify="right")
    for provenance, count in sorted(progress.provenances.items()):
        table.add_row(provenance, str(count))
    if invalid:
        table.add_row("[red]無効なレコード[/red]", str(invalid))
    console.print(table)
    raise typer.Exit(ExitCode.SUCCESS)


# cache サブコマンドグループ
cache_app = typer.Typer(help="キャッシュ管理")
app.add_typer(cache_app, name="cache")


@cache_app.command("clean")
def cache_clean(
    ctx: typer.Context,
    tier: Annotated[CacheScope, typer.Option("--tier", help="削除対象の層", case_sensitive=False)] = CacheScope.BOTH,
    force: Annotated[bool, typer.Option("-f", "--force", help="確認なしで削除")] = False,
) -> None:
    """キャッシュを削除する"""
    config = _load_engine_config(ctx)
    target = "すべてのキャッシュ" if tier is CacheScope.BOTH else f"{tier.value}キャッシュ"

    if not force:
        confirmed = typer.confirm(f"{target}を削除しますか?")
        if not confirmed:
            console.print("[yellow]キャンセルしました[/yellow]")
            raise typer.Exit(ExitCode.SUCCESS)

    with _create_logger(0) as logger:
        store = _load_cache_store(config, logger)
        _create_engine(config, logger, store).clear_cache(tier)
        _save_cache_store(config, store, logger)

    console.print(f"[green]{target}を削除しました[/green]")
    raise typer.Exit(ExitCode.SUCCESS)


@cache_app.command("info")
def cache_info(
    ctx: typer.Context,
    tier: Annotated[CacheScope, typer.Option("--tier", help="表示対象の層", case_sensitive=False)] = CacheScope.BOTH,
) -> None:
    """キャッシュ情報を表示する"""
    config = _load_engine_config(ctx)

    with _create_logger(0) as logger:
        store = _load_cache_store(config, logger)
        engine = _create_engine(config, logger, store)
        scopes = list(tier.tiers)

        table = Table(title="キャッシュ情報")
        table.add_column("層", style="cyan")
        table.add_column("有効期間", justify="right")
        table.add_column("総数", justify="right")
        table.add_column("有効", justify="right", style="green")
        table.add_column("期限切れ", justify="right", style="red")

        for cache_tier in scopes:
            stats = engine.get_cache_stats(CacheScope(cache_tier.value))
            table.add_row(
                cache_tier.value,
                str(store.ttl(cache_tier)),
                str(stats.total_entries),
                str(stats.valid_entries),
                str(stats.expired_entries),
            )

    cache_file = get_cache_file_path()
    location = str(cache_file) if config.cache.persist else "[dim]保存しない[/dim]"
    console.print(Panel(table, title=location, border_style="blue"))
    raise typer.Exit(ExitCode.SUCCESS)


# custom サブコマンドグループ
custom_app = typer.Typer(help="カスタムアイコン管理")
app.add_typer(custom_app, name="custom")


@custom_app.command("set")
def custom_set(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="プログラム名（完全一致）")],
    image: Annotated[Path, typer.Argument(help="画像ファイル（PNG/ICO/BMP/SVG）")],
) -> None:
    """カスタムアイコンを登録する"""
    config = _load_engine_config(ctx)

    try:
        image_bytes = image.read_bytes()
    except OSError as e:
        console.print(f"[red]Error: 画像を読み込めません: {e}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e

    with _create_logger(0) as logger:
        store = _load_cache_store(config, logger)
        engine = _create_engine(config, logger, store)
        try:
            icon = engine.register_custom_icon(name, image_bytes, source_path=str(image))
        except (InvalidRequestError, CustomIconError) as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(ExitCode.ERROR) from e
        _save_cache_store(config, store, logger)

    console.print(_icon_table(name, icon))
    console.print(f"[green]カスタムアイコンを登録しました: {name}[/green]")
    raise typer.Exit(ExitCode.SUCCESS)


@custom_app.command("remove")
def custom_remove(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="プログラム名（完全一致）")],
) -> None:
    """カスタムアイコンを削除する"""
    config = _load_engine_config(ctx)

    with _create_logger(0) as logger:
        store = _load_cache_store(config, logger)
        engine = _create_engine(config, logger, store)
        try:
            removed = engine.remove_custom_icon(name)
        except CustomIconError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(ExitCode.ERROR) from e
        _save_cache_store(config, store, logger)

    if not removed:
        console.print(f"[yellow]カスタムアイコンは登録されていません: {name}[/yellow]")
        raise typer.Exit(ExitCode.ERROR)

    console.print(f"[green]カスタムアイコンを削除しました: {name}[/green]")
    raise typer.Exit(ExitCode.SUCCESS)


@custom_app.command("list")
def custom_list(ctx: typer.Context) -> None:
    """登録済みのカスタムアイコンを表示する"""
    config = _load_engine_config(ctx)

    with _create_logger(0) as logger:
        icons = _create_engine(config, logger).list_custom_icons()

    if not icons:
        console.print("[dim]カスタムアイコンは登録されていません[/dim]")
        raise typer.Exit(ExitCode.SUCCESS)

    table = Table(title="カスタムアイコン")
    table.add_column("プログラム名", style="cyan")
    table.add_column("形式")
    table.add_column("サイズ", justify="right")
    table.add_column("登録元")
    for program_name, icon in icons:
        table.add_row(program_name, icon.format.value, f"{icon.size}px", icon.source or "-")
    console.print(table)
    raise typer.Exit(ExitCode.SUCCESS)


def version_callback(value: bool) -> None:
    """バージョン表示コールバック"""
    if value:
        typer.echo(f"iconscope {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="バージョンを表示する",
        ),
    ] = False,
    config: Annotated[Path | None, typer.Option("--config", help="設定ファイル（YAML）")] = None,
) -> None:
    """iconscope CLI - プログラムアイコンの解決とキャッシュ"""
    ctx.obj = {"config_path": config}
