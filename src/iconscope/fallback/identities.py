"""既知アプリケーションのアイコン定義

ローカルのアイコンが見つからない場合に使用する、よく知られたアプリケーションの
名前・別名・発行元とアイコンURL（simple-icons CDN）の対応表。
"""

from __future__ import annotations

from dataclasses import dataclass

SIMPLE_ICONS_BASE_URL = "https://cdn.jsdelivr.net/gh/simple-icons/simple-icons@develop/icons"


@dataclass(frozen=True)
class IconIdentity:
    """既知アプリケーションのアイコン定義

    Attributes:
        name: アプリケーション名
        publisher: 発行元
        url: アイコンのURL
        aliases: 別名・キーワード
    """

    name: str
    publisher: str | None
    url: str
    aliases: tuple[str, ...] = ()


def _simple_icon(slug: str) -> str:
    return f"{SIMPLE_ICONS_BASE_URL}/{slug}.svg"


IDENTITIES: tuple[IconIdentity, ...] = (
    # Microsoft
    IconIdentity(
        "Microsoft Office",
        "Microsoft Corporation",
        _simple_icon("microsoftoffice"),
        ("office", "word", "excel", "powerpoint", "outlook", "access", "publisher", "visio"),
    ),
    IconIdentity(
        "Microsoft Visual Studio",
        "Microsoft Corporation",
        _simple_icon("visualstudio"),
        ("visual studio", "vs", "microsoft visual studio"),
    ),
    IconIdentity(
        "Microsoft Edge",
        "Microsoft Corporation",
        _simple_icon("microsoftedge"),
        ("edge", "microsoft edge", "msedge"),
    ),
    IconIdentity(
        "Microsoft Teams",
        "Microsoft Corporation",
        _simple_icon("microsoftteams"),
        ("teams", "microsoft teams"),
    ),
    IconIdentity(
        "OneDrive",
        "Microsoft Corporation",
        _simple_icon("onedrive"),
        ("onedrive", "microsoft onedrive"),
    ),
    IconIdentity("Skype", "Microsoft Corporation", _simple_icon("skype"), ("skype",)),
    # Google
    IconIdentity("Google Chrome", "Google LLC", _simple_icon("googlechrome"), ("chrome", "google chrome")),
    IconIdentity("Google Drive", "Google LLC", _simple_icon("googledrive"), ("google drive", "drive")),
    IconIdentity("Google Earth", "Google LLC", _simple_icon("googleearth"), ("google earth", "earth")),
    # Adobe
    IconIdentity(
        "Adobe Acrobat",
        "Adobe Inc.",
        _simple_icon("adobeacrobatreader"),
        ("acrobat", "adobe acrobat", "pdf", "adobe reader"),
    ),
    IconIdentity(
        "Adobe Photoshop",
        "Adobe Inc.",
        _simple_icon("adobephotoshop"),
        ("photoshop", "adobe photoshop", "ps"),
    ),
    IconIdentity(
        "Adobe Illustrator",
        "Adobe Inc.",
        _simple_icon("adobeillustrator"),
        ("illustrator", "adobe illustrator", "ai"),
    ),
    IconIdentity(
        "Adobe Premiere Pro",
        "Adobe Inc.",
        _simple_icon("adobepremierepro"),
        ("premiere", "adobe premiere", "premiere pro"),
    ),
    # 開発ツール
    IconIdentity(
        "Visual Studio Code",
        "Microsoft Corporation",
        _simple_icon("visualstudiocode"),
        ("vscode", "visual studio code", "code"),
    ),
    IconIdentity("Git", "The Git Development Community", _simple_icon("git"), ("git",)),
    IconIdentity("GitHub Desktop", "GitHub Inc.", _simple_icon("github"), ("github desktop", "github")),
    IconIdentity("Node.js", "Node.js Foundation", _simple_icon("nodedotjs"), ("node", "nodejs", "node.js")),
    IconIdentity("Python", "Python Software Foundation", _simple_icon("python"), ("python",)),
    IconIdentity("Docker", "Docker Inc.", _simple_icon("docker"), ("docker",)),
    # ブラウザ
    IconIdentity("Mozilla Firefox", "Mozilla Corporation", _simple_icon("firefox"), ("firefox", "mozilla firefox")),
    IconIdentity("Brave", "Brave Software Inc", _simple_icon("brave"), ("brave",)),
    IconIdentity("Opera", "Opera Software", _simple_icon("opera"), ("opera",)),
    IconIdentity("Vivaldi", "Vivaldi Technologies", _simple_icon("vivaldi"), ("vivaldi",)),
    # メディアプレイヤー
    IconIdentity("VLC Media Player", "VideoLAN", _simple_icon("vlcmediaplayer"), ("vlc", "vlc media player")),
    IconIdentity("Spotify", "Spotify AB", _simple_icon("spotify"), ("spotify",)),
    IconIdentity("Winamp", "Nullsoft", _simple_icon("winamp"), ("winamp",)),
    # コミュニケーション
    IconIdentity("Discord", "Discord Inc.", _simple_icon("discord"), ("discord",)),
    IconIdentity("Slack", "Slack Technologies", _simple_icon("slack"), ("slack",)),
    IconIdentity("Zoom", "Zoom Video Communications", _simple_icon("zoom"), ("zoom",)),
    IconIdentity("WhatsApp", "WhatsApp Inc.", _simple_icon("whatsapp"), ("whatsapp",)),
    # ゲーム
    IconIdentity("Steam", "Valve Corporation", _simple_icon("steam"), ("steam",)),
    IconIdentity("Epic Games", "Epic Games Inc.", _simple_icon("epicgames"), ("epic games", "epic launcher")),
    IconIdentity("Origin", "Electronic Arts", _simple_icon("origin"), ("origin", "ea origin")),
    # ユーティリティ
    IconIdentity("7-Zip", "Igor Pavlov", _simple_icon("7zip"), ("7-zip", "7zip")),
    IconIdentity("WinRAR", "RARLAB", _simple_icon("winrar"), ("winrar", "rar")),
    IconIdentity(
        "Notepad++",
        "Notepad++ Team",
        _simple_icon("notepadplusplus"),
        ("notepad++", "notepad plus plus"),
    ),
    IconIdentity("PuTTY", "Simon Tatham", _simple_icon("putty"), ("putty",)),
    # セキュリティ
    IconIdentity(
        "Windows Defender",
        "Microsoft Corporation",
        _simple_icon("microsoft"),
        ("windows defender", "defender", "microsoft defender"),
    ),
    IconIdentity("Malwarebytes", "Malwarebytes Inc.", _simple_icon("malwarebytes"), ("malwarebytes",)),
    # HP
    IconIdentity(
        "HP Connection Optimizer",
        "HP Inc.",
        _simple_icon("hp"),
        ("hp connection optimizer", "hp optimizer", "connection optimizer"),
    ),
    IconIdentity(
        "HP Documentation",
        "HP Inc.",
        _simple_icon("hp"),
        ("hp documentation", "hp docs", "documentation"),
    ),
    IconIdentity(
        "HP Notifications",
        "HP",
        _simple_icon("hp"),
        ("hp notifications", "hp notify", "notifications"),
    ),
    IconIdentity(
        "HP Security Update Service",
        "HP Inc.",
        _simple_icon("hp"),
        ("hp security", "hp security update", "security update service"),
    ),
    IconIdentity(
        "HP Sure Recover",
        "HP Inc.",
        _simple_icon("hp"),
        ("hp sure recover", "sure recover", "recover"),
    ),
    IconIdentity(
        "HP Wolf Security",
        "HP Inc.",
        _simple_icon("hp"),
        ("hp wolf security", "wolf security", "wolf"),
    ),
    IconIdentity(
        "HP Wolf Security - Console",
        "HP Inc.",
        _simple_icon("hp"),
        ("hp wolf security console", "wolf security console", "wolf console"),
    ),
    IconIdentity(
        "HP Sure Run Module",
        "HP Inc.",
        _simple_icon("hp"),
        ("hp sure run", "sure run module", "sure run"),
    ),
    IconIdentity(
        "HP System Default Settings",
        "HP Inc.",
        _simple_icon("hp"),
        ("hp system default", "system default settings", "default settings"),
    ),
    # Microsoft システムコンポーネント
    IconIdentity(
        "Application Verifier x64 External Package",
        "Microsoft Corporation",
        _simple_icon("microsoft"),
        ("application verifier", "verifier", "microsoft verifier"),
    ),
    IconIdentity(
        "DiagnosticsHub_CollectionService",
        "Microsoft Corporation",
        _simple_icon("microsoft"),
        ("diagnostics hub", "collection service", "diagnostics"),
    ),
)
