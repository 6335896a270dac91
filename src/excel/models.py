"""
変更座標のデータモデル

参照文字列は取り込み時に一度だけ解析し、以降はこのモデルで扱う
"""

from dataclasses import dataclass, field
from typing import Any

from src.error_messages import InvalidArgumentError


@dataclass(frozen=True, order=True)
class CellCoordinate:
    """1始まりのセル座標（row, col）"""

    row: int
    col: int

    def __post_init__(self):
        if self.row < 1 or self.col < 1:
            raise InvalidArgumentError(
                message=f"Cell coordinate out of range: row={self.row}, col={self.col}.",
                solution="Rows and columns start at 1.",
            )


@dataclass(frozen=True)
class RangeSpecifier:
    """
    検証済みの変更指定子

    - kind="cell": 単一セル（start == end）
    - kind="range": 矩形範囲（start <= end に正規化済み）
    - kind="row": 行番号のみ（start/end は None、row_marker に行番号）

    text は "$" を除いた正規形（例: "A2:C3"）
    """

    kind: str
    text: str
    start: CellCoordinate | None = None
    end: CellCoordinate | None = None
    row_marker: int | None = None

    @property
    def is_range(self) -> bool:
        return self.kind == "range"

    @property
    def is_row_marker(self) -> bool:
        return self.kind == "row"

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class NormalizedRange:
    """指定子を展開した結果（セル参照と行番号、いずれも昇順・重複なし）"""

    cells: list[str]
    rows: list[int]


@dataclass(frozen=True, order=True)
class ContiguousRowRange:
    """連続した行範囲 [start, end]（両端を含む）"""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 1 or self.end < self.start:
            raise InvalidArgumentError(
                message=f"Invalid row range: [{self.start}, {self.end}].",
                solution="Row ranges must satisfy 1 <= start <= end.",
            )

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    def contains(self, row: int) -> bool:
        return self.start <= row <= self.end

    def __str__(self) -> str:
        if self.start == self.end:
            return str(self.start)
        return f"{self.start}-{self.end}"


@dataclass
class RegionSnapshot:
    """
    ホストから取得した矩形領域の内容

    values/styles は行優先の2次元リスト。styles の各要素はCSS属性名 -> 値のdict
    """

    start_row: int
    start_col: int
    values: list[list[Any]]
    styles: list[list[dict[str, str]]]
    column_widths: list[int] = field(default_factory=list)
    row_heights: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class RenderedBlock:
    """連続行範囲ごとの描画結果"""

    sheet_id: int
    sheet_name: str
    row_range: ContiguousRowRange
    region: str
    html: str
    highlighted: tuple[str, ...] = ()
