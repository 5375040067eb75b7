"""镜框适配度评分模块，比较面部与镜框尺寸并结合脸型兼容性矩阵给出 0-100 分"""

import logging
import math
from typing import Dict, List, Optional

from detectors.geometry import DegenerateGeometryError, round_half_up
from models.data_models import (
    FaceAnalysis,
    FaceMeasurements,
    FitComponent,
    FitPredictionResult,
    FrameMeasurements,
)

logger = logging.getLogger(__name__)

# 镜框形状 → 脸型 → 兼容分
FRAME_SHAPE_COMPATIBILITY: Dict[str, Dict[str, int]] = {
    "Round": {
        "Square": 95, "Rectangle": 90, "Diamond": 75, "Heart": 80,
        "Oval": 85, "Oblong": 85, "Triangle": 60, "Round": 65,
    },
    "Square": {
        "Round": 95, "Oval": 90, "Heart": 85, "Diamond": 70,
        "Square": 65, "Rectangle": 70, "Oblong": 80, "Triangle": 65,
    },
    "Rectangle": {
        "Round": 90, "Oval": 85, "Heart": 80, "Diamond": 75,
        "Square": 70, "Rectangle": 65, "Oblong": 85, "Triangle": 70,
    },
    "Aviator": {
        "Triangle": 95, "Diamond": 90, "Square": 85, "Heart": 80,
        "Oval": 85, "Oblong": 90, "Round": 75, "Rectangle": 80,
    },
    "Cat-Eye": {
        "Heart": 95, "Diamond": 90, "Oval": 85, "Round": 80,
        "Square": 75, "Rectangle": 70, "Oblong": 80, "Triangle": 85,
    },
    "Wayfarer": {
        "Round": 90, "Oval": 85, "Heart": 80, "Diamond": 85,
        "Square": 75, "Rectangle": 70, "Oblong": 80, "Triangle": 75,
    },
    "Oval": {
        "Square": 90, "Rectangle": 85, "Diamond": 80, "Heart": 85,
        "Oval": 75, "Oblong": 80, "Triangle": 75, "Round": 70,
    },
}

# 子字符串 → 标准镜框形状，按顺序匹配
_FRAME_SHAPE_KEYWORDS = (
    ("round", "Round"),
    ("square", "Square"),
    ("rectangle", "Rectangle"),
    ("aviator", "Aviator"),
    ("cat", "Cat-Eye"),
    ("wayfarer", "Wayfarer"),
    ("oval", "Oval"),
)

DEFAULT_STYLE_SCORE = 75
BETTER_SHAPE_MIN_SCORE = 85

WIDTH_WEIGHT = 0.3
HEIGHT_WEIGHT = 0.2
BRIDGE_WEIGHT = 0.2
STYLE_WEIGHT = 0.3

WIDTH_FACTOR = 0.95
WIDTH_TOLERANCE = 10
LENS_HEIGHT_FACTOR = 0.3
HEIGHT_TOLERANCE = 8
BRIDGE_ALLOWANCE = 2
BRIDGE_TOLERANCE = 3

# 分析结果缺失时使用的平均面部尺寸（mm）
DEFAULT_FACE_MEASUREMENTS = {
    "face_width": 140.0,
    "face_height": 180.0,
    "nose_bridge_width": 16.0,
    "temple_to_temple_distance": 145.0,
    "face_shape": "Oval",
    "cheekbone_width": 130.0,
    "jaw_width": 120.0,
    "forehead_width": 125.0,
}
TEMPLE_TO_FACE_WIDTH = 1.05


def normalize_frame_shape(frame_shape: str) -> str:
    """将自由文本的镜框形状映射到兼容性矩阵的行名，无法识别时为 Oval"""
    if frame_shape is None:
        frame_shape = ""
    if not isinstance(frame_shape, str):
        raise TypeError(f"镜框形状必须是字符串: {frame_shape!r}")
    shape = frame_shape.lower()
    for keyword, normalized in _FRAME_SHAPE_KEYWORDS:
        if keyword in shape:
            return normalized
    return "Oval"


def better_frame_shapes_for_face(face_shape: str, limit: int = 2) -> List[str]:
    """兼容分不低于 85 的镜框形状，按矩阵顺序取前 limit 个"""
    better = [
        frame_shape
        for frame_shape, compatibilities in FRAME_SHAPE_COMPATIBILITY.items()
        if compatibilities.get(face_shape, 0) >= BETTER_SHAPE_MIN_SCORE
    ]
    return better[:limit]


def deviation_score(actual: float, ideal: float, name: str) -> float:
    """
    偏差得分: max(0, 100 - |actual - ideal| / ideal * 100)

    Raises:
        DegenerateGeometryError: ideal 非正或任一值非有限
    """
    if not math.isfinite(actual) or not math.isfinite(ideal):
        raise DegenerateGeometryError(f"{name}: 非有限尺寸 ({actual}, {ideal})")
    if ideal <= 0:
        raise DegenerateGeometryError(f"{name}: 理想尺寸非正 ({ideal})")
    return max(0.0, 100.0 - abs(actual - ideal) / ideal * 100.0)


def face_measurements_from_analysis(
    analysis: Optional[FaceAnalysis],
    mm_per_pixel: Optional[float] = None,
    nose_bridge_width: Optional[float] = None,
) -> FaceMeasurements:
    """
    把像素空间的分析结果换算为适配预测所需的毫米尺寸。

    Args:
        analysis: 脸型分析结果，None 时全部使用默认值
        mm_per_pixel: 像素到毫米的换算比例，None 时无法换算，尺寸用默认值
        nose_bridge_width: 鼻梁宽度（mm），关键点无法测得，缺省为 16

    Returns:
        FaceMeasurements
    """
    defaults = DEFAULT_FACE_MEASUREMENTS
    bridge = nose_bridge_width if nose_bridge_width else defaults["nose_bridge_width"]

    if analysis is None:
        return FaceMeasurements(**dict(defaults, nose_bridge_width=bridge))

    shape = analysis.result.shape or defaults["face_shape"]
    if not mm_per_pixel or mm_per_pixel <= 0:
        return FaceMeasurements(**dict(defaults, nose_bridge_width=bridge, face_shape=shape))

    m = analysis.measurements

    def to_mm(value: Optional[float], key: str) -> float:
        if not value or value <= 0:
            return defaults[key]
        return value * mm_per_pixel

    face_width = to_mm(m.face_width, "face_width")
    return FaceMeasurements(
        face_width=face_width,
        face_height=to_mm(m.face_height, "face_height"),
        nose_bridge_width=bridge,
        temple_to_temple_distance=face_width * TEMPLE_TO_FACE_WIDTH,
        face_shape=shape,
        cheekbone_width=to_mm(m.cheekbone_width, "cheekbone_width"),
        jaw_width=to_mm(m.jaw_width, "jaw_width"),
        forehead_width=to_mm(m.forehead_width, "forehead_width"),
    )


class FrameFitScorer:
    """汇总宽度、高度、鼻梁、风格四项得分，输出适配度预测"""

    def predict(
        self,
        face: FaceMeasurements,
        frame: FrameMeasurements,
        frame_shape: str,
    ) -> FitPredictionResult:
        """
        预测镜框与面部的适配度。

        Args:
            face: 面部尺寸（mm）
            frame: 镜框尺寸（mm）
            frame_shape: 镜框形状（自由文本）

        Returns:
            FitPredictionResult，所有得分在 [0, 100]，recommendations 至少一条

        Raises:
            DegenerateGeometryError: 面部尺寸导致理想值非正
        """
        width_score, width_fit = self._width_fit(face, frame)
        height_score, height_fit = self._height_fit(face, frame)
        bridge_score, bridge_fit = self._bridge_fit(face, frame)
        style_score, style_fit = self._style_fit(face.face_shape, frame_shape)

        overall = round_half_up(
            width_score * WIDTH_WEIGHT
            + height_score * HEIGHT_WEIGHT
            + bridge_score * BRIDGE_WEIGHT
            + style_score * STYLE_WEIGHT
        )

        recommendations = self._recommendations(
            face.face_shape, width_fit, height_fit, bridge_fit, style_fit
        )

        logger.debug(
            "适配度: 宽度=%.1f 高度=%.1f 鼻梁=%.1f 风格=%d 综合=%d",
            width_score, height_score, bridge_score, style_score, overall,
        )

        return FitPredictionResult(
            overall_score=overall,
            width_fit=width_fit,
            height_fit=height_fit,
            bridge_fit=bridge_fit,
            style_fit=style_fit,
            recommendations=recommendations,
        )

    @staticmethod
    def _width_fit(face: FaceMeasurements, frame: FrameMeasurements):
        ideal = face.temple_to_temple_distance * WIDTH_FACTOR
        score = deviation_score(frame.total_width, ideal, "width")

        if frame.total_width < ideal - WIDTH_TOLERANCE:
            status, message = "too narrow", "This frame may be too narrow for your face width."
        elif frame.total_width > ideal + WIDTH_TOLERANCE:
            status, message = "too wide", "This frame may be too wide for your face width."
        else:
            status, message = "good fit", "This frame width should fit your face well."

        return score, FitComponent(score=round_half_up(score), status=status, message=message)

    @staticmethod
    def _height_fit(face: FaceMeasurements, frame: FrameMeasurements):
        ideal = face.face_height * LENS_HEIGHT_FACTOR
        score = deviation_score(frame.lens_height, ideal, "height")

        if frame.lens_height < ideal - HEIGHT_TOLERANCE:
            status, message = "too short", "These lenses may appear too small for your face height."
        elif frame.lens_height > ideal + HEIGHT_TOLERANCE:
            status, message = "too tall", "These lenses may appear too large for your face height."
        else:
            status, message = "good fit", "The lens height should complement your face proportions."

        return score, FitComponent(score=round_half_up(score), status=status, message=message)

    @staticmethod
    def _bridge_fit(face: FaceMeasurements, frame: FrameMeasurements):
        ideal = face.nose_bridge_width + BRIDGE_ALLOWANCE
        score = deviation_score(frame.bridge_width, ideal, "bridge")

        if frame.bridge_width < ideal - BRIDGE_TOLERANCE:
            status, message = "too narrow", "This bridge may be too tight on your nose."
        elif frame.bridge_width > ideal + BRIDGE_TOLERANCE:
            status, message = "too wide", "This bridge may be too loose on your nose."
        else:
            status, message = "good fit", "The bridge width should fit comfortably on your nose."

        return score, FitComponent(score=round_half_up(score), status=status, message=message)

    @staticmethod
    def _style_fit(face_shape: str, frame_shape: str):
        normalized = normalize_frame_shape(frame_shape)
        score = FRAME_SHAPE_COMPATIBILITY.get(normalized, {}).get(face_shape, DEFAULT_STYLE_SCORE)

        if score >= 90:
            status, message = "excellent match", "This frame style is an excellent match for your face shape."
        elif score >= 80:
            status, message = "good match", "This frame style is a good match for your face shape."
        elif score < 70:
            status, message = "not ideal", "This frame style may not be ideal for your face shape."
        else:
            status, message = "acceptable", "This frame style is acceptable for your face shape."

        return score, FitComponent(score=score, status=status, message=message)

    @staticmethod
    def _recommendations(
        face_shape: str,
        width_fit: FitComponent,
        height_fit: FitComponent,
        bridge_fit: FitComponent,
        style_fit: FitComponent,
    ) -> List[str]:
        """每个不合适的子项给出一条建议，全部合适时给出一条肯定的结论"""
        recommendations: List[str] = []

        if width_fit.status == "too narrow":
            recommendations.append("Look for frames with a wider total width.")
        elif width_fit.status == "too wide":
            recommendations.append("Consider frames with a narrower total width.")

        if height_fit.status == "too short":
            recommendations.append("Try frames with taller lenses for better proportion.")
        elif height_fit.status == "too tall":
            recommendations.append("Consider frames with shorter lenses for better proportion.")

        if bridge_fit.status == "too narrow":
            recommendations.append("Look for frames with a wider bridge measurement.")
        elif bridge_fit.status == "too wide":
            recommendations.append("Try frames with a narrower bridge measurement.")

        if style_fit.status == "not ideal":
            better = better_frame_shapes_for_face(face_shape)
            if better:
                recommendations.append(
                    f"For your {face_shape} face shape, consider {', '.join(better)} frames."
                )

        if not recommendations:
            recommendations.append("This frame is a great match for your face measurements and shape!")

        return recommendations
