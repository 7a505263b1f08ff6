"""
複数のレイヤー（エンジン、ローダー、デバッガ、UI）で共有する型。
"""
from typing import Dict, List, NamedTuple

# ラベル名 -> アドレス
SymbolMap = Dict[str, int]


# @intent:data_structure レジスタ1本の表示定義。widthはビット幅で、UIが16進表示の桁数を決めるのに使います。
class RegisterInfo(NamedTuple):
    name: str
    width: int


# @intent:data_structure 見出し付きのレジスタのまとまり（例: "General" に V0-VF）。
class RegisterLayoutInfo(NamedTuple):
    group_name: str
    registers: List[RegisterInfo]
