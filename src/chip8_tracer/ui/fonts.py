"""
UIフォント管理モジュール。

レジスタ、逆アセンブル、メモリダンプなど、桁を揃えて表示するビューが共有する等幅フォントを選択します。
"""
from PySide6.QtGui import QFont, QFontDatabase

# 優先順位の高い順
MONOSPACE_CANDIDATES = ("Consolas", "Menlo", "Monaco", "DejaVu Sans Mono", "Courier New")

# @intent:responsibility 現在のシステムで利用可能な等幅フォントファミリー名を返します。
def get_monospace_font_family() -> str:
    available = set(QFontDatabase.families())
    for family in MONOSPACE_CANDIDATES:
        if family in available:
            return family
    # 候補が無ければQtのシステム既定の等幅フォント
    return QFontDatabase.systemFont(QFontDatabase.FixedFont).family()

def get_monospace_font(size: int = 10, bold: bool = False) -> QFont:
    font = QFont(get_monospace_font_family(), size)
    font.setBold(bold)
    return font
