"""リモートフォールバックアイコンの取得

ローカルでアイコンを取得できなかったプログラムについて、
既知アプリケーションの対応表から一致するアイコンを探し、CDNからダウンロードする。
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import httpx

from iconscope.fallback.identities import IDENTITIES, IconIdentity
from iconscope.resolver.icon import DEFAULT_ICON_SIZE, decode_image_bytes
from iconscope.resolver.matching import alias_matches, fold_name, publishers_match
from iconscope.types import ErrorKind, IconError, IconImage


class RemoteFallbackProvider:
    """既知アプリケーションのアイコンを取得するクラス

    照合は次の順に行う:
    1. 名前または別名との完全一致（大文字小文字を区別しない）
    2. 別名との部分一致（空白を保持した双方向、および3文字以上の単語単位）
    3. 発行元の単語単位の一致（法人格の語は無視する）

    使用例:
        >>> provider = RemoteFallbackProvider()
        >>> identity = provider.lookup("Google Chrome", "Google LLC")
        >>> image = await provider.fetch(identity)
    """

    DEFAULT_TIMEOUT = 10.0  # HTTPリクエストのタイムアウト秒数

    def __init__(
        self,
        identities: Sequence[IconIdentity] = IDENTITIES,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        nominal_size: int = DEFAULT_ICON_SIZE,
    ) -> None:
        """RemoteFallbackProviderを初期化する

        Args:
            identities: アイコン定義の対応表
            http_client: HTTPクライアント（テスト用の依存性注入）。
                         Noneの場合は初回取得時に内部でクライアントを作成。
            timeout: 内部クライアントのタイムアウト秒数
            nominal_size: SVGの公称サイズ
        """
        self._identities = tuple(identities)
        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout
        self._nominal_size = nominal_size

    @property
    def identities(self) -> tuple[IconIdentity, ...]:
        return self._identities

    def lookup(self, name: str, publisher: str | None = None) -> IconIdentity | None:
        """プログラムに対応するアイコン定義を探す

        Args:
            name: プログラム名
            publisher: 発行元

        Returns:
            一致したアイコン定義。見つからない場合はNone
        """
        folded = fold_name(name)
        if not folded:
            return None

        for identity in self._identities:
            if folded == fold_name(identity.name) or any(folded == fold_name(a) for a in identity.aliases):
                return identity

        for identity in self._identities:
            for alias in identity.aliases:
                if alias_matches(name, alias):
                    return identity

        if publisher:
            for identity in self._identities:
                if publishers_match(publisher, identity.publisher):
                    return identity

        return None

    async def fetch(self, identity: IconIdentity) -> IconImage | IconError:
        """アイコンをダウンロードする

        リトライは行わない。

        Args:
            identity: アイコン定義

        Returns:
            取得した画像。失敗時はNETWORK_FAILUREまたはMALFORMED_PAYLOADのIconError
        """
        client = self._get_client()
        try:
            response = await client.get(identity.url, follow_redirects=True)
            response.raise_for_status()
        except httpx.RequestError as e:
            return IconError(ErrorKind.NETWORK_FAILURE, f"ネットワークエラー: {e}")
        except httpx.HTTPStatusError as e:
            return IconError(
                ErrorKind.NETWORK_FAILURE, f"HTTPエラー {e.response.status_code}: {identity.url}"
            )

        return await asyncio.to_thread(decode_image_bytes, response.content, self._nominal_size)

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def aclose(self) -> None:
        """内部で作成したHTTPクライアントを閉じる"""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
