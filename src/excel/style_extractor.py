"""
Excelスタイル抽出ユーティリティ

セルスタイル（文字色・フォント・背景色・配置・サイズ）をHTML描画用のCSS属性に変換するヘルパークラス
"""

from openpyxl.styles import Color

# openpyxlの既定値（列幅は文字数単位、行高さはポイント単位）
DEFAULT_COLUMN_WIDTH = 8.43
DEFAULT_ROW_HEIGHT = 15.0

# Excelの水平・垂直配置 -> CSSの値
_HORIZONTAL_ALIGNMENT = {
    "left": "left",
    "center": "center",
    "centerContinuous": "center",
    "right": "right",
    "justify": "justify",
    "distributed": "justify",
    "fill": "left",
}
_VERTICAL_ALIGNMENT = {
    "top": "top",
    "center": "middle",
    "bottom": "bottom",
    "justify": "middle",
    "distributed": "middle",
}


class ExcelStyleExtractor:
    """セルスタイル情報の抽出と変換（全て staticmethod）"""

    @staticmethod
    def color_to_hex(color: Color | None) -> str | None:
        """
        openpyxl Colorオブジェクトを16進数カラーコードに変換

        Args:
            color: openpyxl Color

        Returns:
            16進数カラーコード (例: "#FF0000") またはNone
            テーマカラー・インデックスカラーはCSSで表現できないためNone
        """
        if color is None:
            return None

        if color.type == "rgb":
            # RGB形式 (例: "FFFF0000" → "#FF0000")
            rgb = color.rgb
            if rgb and isinstance(rgb, str) and len(rgb) >= 6:
                return f"#{rgb[-6:]}"

        return None

    @staticmethod
    def width_to_pixels(width: float | None) -> int:
        """列幅（文字数単位）をピクセルに変換"""
        if not width:
            width = DEFAULT_COLUMN_WIDTH
        return int(round(width * 7 + 5))

    @staticmethod
    def height_to_pixels(height: float | None) -> int:
        """行高さ（ポイント単位）をピクセルに変換"""
        if not height:
            height = DEFAULT_ROW_HEIGHT
        return int(round(height * 4 / 3))

    @staticmethod
    def build_cell_size_cache(sheet) -> tuple[dict[str, int], dict[int, int]]:
        """
        列幅・行高さ（ピクセル）のキャッシュを構築

        Args:
            sheet: openpyxl Worksheet

        Returns:
            (col_widths, row_heights)のタプル
            - col_widths: 列文字 -> 幅(px)のマップ
            - row_heights: 行番号 -> 高さ(px)のマップ
            明示的に設定された列・行のみ含む
        """
        col_widths: dict[str, int] = {}
        row_heights: dict[int, int] = {}

        for col_letter, dim in sheet.column_dimensions.items():
            if dim.width:
                col_widths[col_letter] = ExcelStyleExtractor.width_to_pixels(
                    dim.width
                )

        for row_num, dim in sheet.row_dimensions.items():
            if dim.height:
                row_heights[row_num] = ExcelStyleExtractor.height_to_pixels(
                    dim.height
                )

        return (col_widths, row_heights)

    @staticmethod
    def extract_cell_styles(cell) -> dict[str, str]:
        """
        セルからCSS属性を抽出

        Args:
            cell: openpyxl Cell

        Returns:
            CSS属性名 -> 値のdict（color, font-family, font-size, font-weight,
            background-color, text-align, vertical-align）
        """
        styles: dict[str, str] = {}

        font = cell.font
        if font is not None:
            font_color = ExcelStyleExtractor.color_to_hex(font.color)
            if font_color:
                styles["color"] = font_color
            if font.name:
                styles["font-family"] = font.name
            if font.sz:
                styles["font-size"] = f"{float(font.sz):g}pt"
            styles["font-weight"] = "bold" if font.b else "normal"

        # 背景色はパターン塗りつぶしのみ対応
        if cell.fill is not None and cell.fill.patternType == "solid":
            background = ExcelStyleExtractor.color_to_hex(cell.fill.fgColor)
            if background:
                styles["background-color"] = background

        alignment = cell.alignment
        if alignment is not None:
            if alignment.horizontal in _HORIZONTAL_ALIGNMENT:
                styles["text-align"] = _HORIZONTAL_ALIGNMENT[alignment.horizontal]
            if alignment.vertical in _VERTICAL_ALIGNMENT:
                styles["vertical-align"] = _VERTICAL_ALIGNMENT[alignment.vertical]

        return styles

    @staticmethod
    def to_css(styles: dict[str, str]) -> str:
        """CSS属性のdictをstyle属性値に変換（例: "color:#FF0000;font-weight:bold"）"""
        return ";".join(f"{name}:{value}" for name, value in styles.items())
