"""几何与比例计算辅助函数"""

import math
from typing import Iterable, Tuple

# 分母绝对值小于该值视为退化几何
EPSILON = 1e-6


class DegenerateGeometryError(ValueError):
    """比例分母为零、接近零或非有限值时抛出"""


def midpoint(p1: Tuple[float, float], p2: Tuple[float, float]) -> Tuple[float, float]:
    return ((p1[0] + p2[0]) / 2.0, (p1[1] + p2[1]) / 2.0)


def horizontal_span(p1: Tuple[float, float], p2: Tuple[float, float]) -> float:
    """两点的水平距离"""
    return abs(p2[0] - p1[0])


def safe_ratio(numerator: float, denominator: float, name: str = "ratio") -> float:
    """
    计算两段长度的比值。

    Args:
        numerator: 分子
        denominator: 分母
        name: 比值名称，用于错误信息

    Returns:
        numerator / denominator

    Raises:
        DegenerateGeometryError: 分子或分母非有限值，或分母接近零
    """
    if not math.isfinite(numerator) or not math.isfinite(denominator):
        raise DegenerateGeometryError(f"{name}: 非有限测量值 ({numerator}, {denominator})")
    if abs(denominator) < EPSILON:
        raise DegenerateGeometryError(f"{name}: 分母接近零 ({denominator})")
    return numerator / denominator


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """四舍五入到整数（0.5 向上取整，与 Python 内置 round 的银行家舍入不同）"""
    return int(math.floor(value + 0.5))


def mean(values: Iterable[float]) -> float:
    values = list(values)
    return sum(values) / len(values)
