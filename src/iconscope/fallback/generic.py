"""プログラム種別ごとの汎用アイコン

どの取得方法でもアイコンが得られない場合の最終手段として、
組み込みのSVGアイコンを返す。I/Oを行わないため失敗しない。
"""

from __future__ import annotations

from iconscope.types import IconImage, ImageFormat, ProgramType

_SVG_TEMPLATE = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="{size}" height="{size}" '
    'viewBox="0 0 24 24" fill="none" stroke="{color}" stroke-width="2" '
    'stroke-linecap="round" stroke-linejoin="round">{body}</svg>'
)

# (線の色, SVG本体)
_GENERIC_SHAPES: dict[ProgramType, tuple[str, str]] = {
    # ウィンドウ
    ProgramType.APPLICATION: (
        "#1976d2",
        '<rect x="3" y="4" width="18" height="16" rx="2"/><line x1="3" y1="9" x2="21" y2="9"/>',
    ),
    # 歯車
    ProgramType.SYSTEM_COMPONENT: (
        "#616161",
        '<circle cx="12" cy="12" r="3"/>'
        '<path d="M12 2v3M12 19v3M4.2 4.2l2.1 2.1M17.7 17.7l2.1 2.1M2 12h3M19 12h3'
        'M4.2 19.8l2.1-2.1M17.7 6.3l2.1-2.1"/>',
    ),
    # 回転矢印
    ProgramType.UPDATE: (
        "#388e3c",
        '<path d="M21 12a9 9 0 1 1-3-6.7"/><polyline points="21 3 21 9 15 9"/>',
    ),
    # USBメモリ
    ProgramType.PORTABLE: (
        "#f57c00",
        '<rect x="7" y="8" width="10" height="14" rx="2"/><rect x="9" y="2" width="6" height="6"/>',
    ),
    # ファイル
    ProgramType.UNKNOWN: (
        "#9e9e9e",
        '<path d="M14 2H6a2 2 0 0 0-2 2v16a2 2 0 0 0 2 2h12a2 2 0 0 0 2-2V8z"/>'
        '<polyline points="14 2 14 8 20 8"/>',
    ),
}


class GenericIconProvider:
    """プログラム種別に応じた汎用アイコンを提供するクラス

    使用例:
        >>> provider = GenericIconProvider()
        >>> provider.get_icon(ProgramType.APPLICATION).format
        <ImageFormat.SVG: 'svg'>
    """

    def get_icon(self, program_type: ProgramType, preferred_size: int = 32) -> IconImage:
        """汎用アイコンを取得する

        Args:
            program_type: プログラム種別
            preferred_size: SVGのwidth/heightに設定するサイズ

        Returns:
            SVG形式のアイコン画像
        """
        color, body = _GENERIC_SHAPES.get(program_type, _GENERIC_SHAPES[ProgramType.UNKNOWN])
        svg = _SVG_TEMPLATE.format(size=preferred_size, color=color, body=body)
        return IconImage(data=svg.encode("utf-8"), format=ImageFormat.SVG, size=preferred_size)

    def source_for(self, program_type: ProgramType) -> str:
        """診断用の取得元文字列を返す"""
        return f"builtin:{program_type.value}"
