"""
UIテーマ管理モジュール。

クロスプラットフォーム（Windows/Mac/Linux）で最適な等幅フォントの選択と、
アプリケーション全体のダークテーマを提供します。
"""
from PySide6.QtGui import QColor, QFont, QFontDatabase, QPalette
from PySide6.QtWidgets import QApplication

# --- 色定義 ---
COLOR_BG = "#101010"
COLOR_PANEL = "#121212"
COLOR_TEXT = "#BBBBBB"
COLOR_VALUE = "#FFD700"
COLOR_ACCENT = "#2A82DA"
COLOR_HIGHLIGHT = "#404000"
COLOR_BREAKPOINT = "#FF5555"
COLOR_PIXEL_ON = "#33FF66"
COLOR_PIXEL_OFF = "#0A0A0A"


# @intent:responsibility 現在のシステムで利用可能な最適な等幅フォントファミリー名を返します。
def get_monospace_font_family() -> str:
    """
    優先順位: Consolas -> Menlo -> Monaco -> DejaVu Sans Mono -> Courier New -> システム既定
    """
    preferred_fonts = ["Consolas", "Menlo", "Monaco", "DejaVu Sans Mono", "Courier New"]
    available_families = QFontDatabase.families()

    for font in preferred_fonts:
        if font in available_families:
            return font

    return QFontDatabase.systemFont(QFontDatabase.FixedFont).family()


def get_monospace_font(size: int = 10) -> QFont:
    return QFont(get_monospace_font_family(), size)


# @intent:responsibility アプリケーションにダークテーマのパレットを適用し、ウィンドウ用のスタイルシートを返します。
def apply_dark_theme() -> str:
    dark_palette = QPalette()
    dark_palette.setColor(QPalette.Window, QColor(29, 29, 29))
    dark_palette.setColor(QPalette.WindowText, QColor(224, 224, 224))
    dark_palette.setColor(QPalette.Base, QColor(30, 30, 30))
    dark_palette.setColor(QPalette.AlternateBase, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.ToolTipBase, QColor(29, 29, 29))
    dark_palette.setColor(QPalette.ToolTipText, QColor(224, 224, 224))
    dark_palette.setColor(QPalette.Text, QColor(224, 224, 224))
    dark_palette.setColor(QPalette.Button, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.ButtonText, QColor(224, 224, 224))
    dark_palette.setColor(QPalette.BrightText, QColor(255, 0, 0))
    dark_palette.setColor(QPalette.Highlight, QColor(COLOR_ACCENT))
    dark_palette.setColor(QPalette.HighlightedText, QColor(0, 0, 0))
    QApplication.setPalette(dark_palette)

    font_family = get_monospace_font_family()
    # MacOSでの表示崩れ（タブ文字の重なり）を防ぐため、paddingを調整
    return f"""
        QWidget {{ font-family: '{font_family}', monospace; font-size: 10pt; }}
        QMainWindow, QToolBar {{ background-color: #1D1D1D; border: none; }}
        QDockWidget::title {{ text-align: left; background: {COLOR_BG}; padding: 4px; font-weight: bold; }}
        QTabWidget::pane {{ border-top: 2px solid {COLOR_ACCENT}; }}
        QTabBar::tab {{
            background: #1E1E1E;
            border: 1px solid #1E1E1E;
            border-bottom-color: {COLOR_ACCENT};
            padding: 8px 12px;
            min-width: 80px;
        }}
        QTabBar::tab:selected {{ background: {COLOR_BG}; border: 1px solid {COLOR_ACCENT}; border-bottom-color: {COLOR_BG}; }}
        QTabBar::tab:!selected {{ margin-top: 2px; }}
        QToolTip {{ border: 1px solid #E0E0E0; background-color: #1D1D1D; color: #E0E0E0; }}
    """
