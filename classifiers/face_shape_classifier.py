"""脸型分类模块，按规则表对面部测量值打分，得分最高的脸型胜出"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from detectors.geometry import round_half_up
from detectors.measurement_analyzer import MeasurementAnalyzer
from models.data_models import (
    FACE_SHAPES,
    FaceAnalysis,
    FaceLandmarks,
    FaceShapeResult,
    FacialMeasurements,
    ShapeScore,
)

logger = logging.getLogger(__name__)

# 任一脸型可获得的满分，用于归一化置信度
MAX_POSSIBLE_SCORE = 7

# 简化模式下的宽高比分界
_SIMPLIFIED_WIDE_ASPECT = 1.05
_SIMPLIFIED_BALANCED_ASPECT = 0.95


@dataclass(frozen=True)
class ShapeRule:
    """
    单条脸型规则：特征值满足所有给定边界时加 points 分。

    above/below 为严格不等，at_least/at_most 含边界。
    """
    feature: str
    points: int
    above: Optional[float] = None
    below: Optional[float] = None
    at_least: Optional[float] = None
    at_most: Optional[float] = None

    def matches(self, value: Optional[float]) -> bool:
        if value is None:
            return False
        if self.above is not None and not value > self.above:
            return False
        if self.below is not None and not value < self.below:
            return False
        if self.at_least is not None and not value >= self.at_least:
            return False
        if self.at_most is not None and not value <= self.at_most:
            return False
        return True


DEFAULT_SHAPE_RULES: Dict[str, Tuple[ShapeRule, ...]] = {
    # 比例均衡，脸长约为宽的 1.5 倍，额头略宽于下颌
    "Oval": (
        ShapeRule("width_to_height_ratio", 2, at_least=0.65, at_most=0.75),
        ShapeRule("forehead_to_jaw_ratio", 2, at_least=1.0, at_most=1.2),
        ShapeRule("third_ratio", 2, below=1.2),
        ShapeRule("jaw_angularity", 1, below=80),
    ),
    # 宽高接近，下颌柔和，脸颊饱满
    "Round": (
        ShapeRule("width_to_height_ratio", 3, at_least=0.8),
        ShapeRule("jaw_angularity", 2, below=70),
        ShapeRule("chin_to_jaw_ratio", 2, above=0.7),
        ShapeRule("cheekbone_to_jaw_ratio", 1, below=1.1),
    ),
    # 宽高接近，下颌线硬朗，额头到下颌几乎不收窄
    "Square": (
        ShapeRule("width_to_height_ratio", 2, at_least=0.75, at_most=0.85),
        ShapeRule("forehead_to_jaw_ratio", 2, at_least=0.9, at_most=1.1),
        ShapeRule("jaw_angularity", 3, above=85),
        ShapeRule("jaw_to_face_width_ratio", 1, above=0.85),
    ),
    # 额头宽，下颌窄，尖下巴
    "Heart": (
        ShapeRule("forehead_to_jaw_ratio", 3, above=1.3),
        ShapeRule("chin_to_jaw_ratio", 2, below=0.6),
        ShapeRule("cheekbone_to_jaw_ratio", 1, above=1.15),
        ShapeRule("width_to_height_ratio", 1, below=0.75),
    ),
    # 颧骨突出，额头与下颌都较窄
    "Diamond": (
        ShapeRule("cheekbone_to_jaw_ratio", 3, above=1.25),
        ShapeRule("cheekbone_to_forehead_ratio", 2, above=1.0),
        ShapeRule("chin_to_jaw_ratio", 1, below=0.65),
        ShapeRule("forehead_to_jaw_ratio", 1, below=1.1),
    ),
    # 脸长，额头、颧骨、下颌宽度相近
    "Oblong": (
        ShapeRule("width_to_height_ratio", 3, below=0.65),
        ShapeRule("forehead_to_jaw_ratio", 2, at_least=0.9, at_most=1.1),
        ShapeRule("cheekbone_to_jaw_ratio", 2, at_least=0.9, at_most=1.1),
        ShapeRule("third_ratio", 1, above=1.3),
    ),
    # 偏长且下颌宽而有棱角
    "Rectangle": (
        ShapeRule("width_to_height_ratio", 2, at_least=0.65, below=0.8),
        ShapeRule("jaw_to_face_width_ratio", 2, above=0.8),
        ShapeRule("cheekbone_to_jaw_ratio", 2, below=0.9),
        ShapeRule("jaw_angularity", 1, above=80),
    ),
    # 额头窄，下颌宽
    "Triangle": (
        ShapeRule("forehead_to_jaw_ratio", 3, below=0.8),
        ShapeRule("jaw_to_face_width_ratio", 2, above=0.9),
        ShapeRule("cheekbone_to_jaw_ratio", 2, below=0.9),
    ),
}


def extract_features(measurements: FacialMeasurements) -> Dict[str, Optional[float]]:
    """规则可引用的全部特征：测量字段加上派生的三庭比与颧额比"""
    features: Dict[str, Optional[float]] = {
        "width_to_height_ratio": measurements.width_to_height_ratio,
        "forehead_to_jaw_ratio": measurements.forehead_to_jaw_ratio,
        "cheekbone_to_jaw_ratio": measurements.cheekbone_to_jaw_ratio,
        "jaw_to_face_width_ratio": measurements.jaw_to_face_width_ratio,
        "chin_to_jaw_ratio": measurements.chin_to_jaw_ratio,
        "forehead_to_chin_ratio": measurements.forehead_to_chin_ratio,
        "eye_spacing_ratio": measurements.eye_spacing_ratio,
        "jaw_angularity": measurements.jaw_angularity,
        "symmetry_score": measurements.symmetry_score,
        "golden_ratio_score": measurements.golden_ratio_score,
        "cheekbone_to_forehead_ratio": None,
        "third_ratio": None,
    }

    if measurements.forehead_width > 0:
        features["cheekbone_to_forehead_ratio"] = measurements.cheekbone_width / measurements.forehead_width

    thirds = measurements.facial_thirds
    if thirds is not None:
        segments = (thirds.upper, thirds.middle, thirds.lower)
        if min(segments) > 0:
            features["third_ratio"] = max(segments) / min(segments)

    return features


class FaceShapeClassifier:
    """根据面部测量值输出脸型、置信度和备选脸型"""

    def __init__(
        self,
        rules: Optional[Dict[str, Sequence[ShapeRule]]] = None,
        analyzer: Optional[MeasurementAnalyzer] = None,
    ):
        """
        Args:
            rules: 脸型 → 规则列表；缺省使用 DEFAULT_SHAPE_RULES
            analyzer: 测量模块，缺省新建 MeasurementAnalyzer
        """
        self.rules = dict(rules) if rules is not None else dict(DEFAULT_SHAPE_RULES)
        unknown = set(self.rules) - set(FACE_SHAPES)
        if unknown:
            raise ValueError(f"未知脸型标签: {sorted(unknown)}")
        self._analyzer = analyzer or MeasurementAnalyzer()

    def analyze(self, landmarks: Union[FaceLandmarks, List[Tuple[float, float]]]) -> FaceAnalysis:
        """
        由关键点完成测量与分类。关键点不足 68 个时走简化路径。

        Raises:
            DegenerateGeometryError: 几何退化，无法得到有效比例
        """
        points = landmarks.all_landmarks if isinstance(landmarks, FaceLandmarks) else list(landmarks)

        if len(points) >= 68:
            measurements = self._analyzer.measure(points)
            result = self.classify(measurements)
            simplified = False
        else:
            logger.info("关键点仅 %d 个，使用简化分析", len(points))
            measurements = self._analyzer.measure_simplified(points)
            result = self.classify_simplified(measurements)
            simplified = True

        return FaceAnalysis(
            result=result,
            measurements=measurements,
            landmark_count=len(points),
            simplified=simplified,
        )

    def score_shapes(self, measurements: FacialMeasurements) -> Dict[str, int]:
        """按优先级顺序返回每种脸型的规则累计得分"""
        features = extract_features(measurements)
        scores: Dict[str, int] = {}
        for shape in FACE_SHAPES:
            if shape not in self.rules:
                continue
            scores[shape] = sum(
                rule.points for rule in self.rules[shape] if rule.matches(features.get(rule.feature))
            )
        return scores

    def classify(self, measurements: FacialMeasurements) -> FaceShapeResult:
        """
        取得分最高的脸型；平分时按 FACE_SHAPES 顺序取前者，全零时为 Oval。

        Returns:
            FaceShapeResult，confidence 为 0-100 的整数
        """
        scores = self.score_shapes(measurements)

        best_shape, best_score = "Oval", 0
        for shape, score in scores.items():
            if score > best_score:
                best_shape, best_score = shape, score

        # sorted 是稳定排序，同分保持优先级顺序
        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)[:3]
        alternatives = [ShapeScore(shape=s, score=self._normalize(v)) for s, v in ranked]

        logger.debug("脸型得分: %s → %s", scores, best_shape)

        return FaceShapeResult(
            shape=best_shape,
            confidence=self._normalize(best_score),
            alternative_shapes=alternatives,
        )

    @staticmethod
    def classify_simplified(measurements: FacialMeasurements) -> FaceShapeResult:
        """仅凭包围盒宽高比的粗略估计"""
        aspect = measurements.width_to_height_ratio

        if aspect > _SIMPLIFIED_WIDE_ASPECT:
            shape, confidence = "Round", 60
        elif aspect > _SIMPLIFIED_BALANCED_ASPECT:
            shape, confidence = "Oval", 65
        else:
            shape, confidence = "Oval", 55

        alternatives = [
            ShapeScore(shape=shape, score=confidence),
            ShapeScore(shape="Square", score=max(30, min(50, 80 - confidence))),
            ShapeScore(shape="Heart", score=max(25, min(45, 75 - confidence))),
        ]
        return FaceShapeResult(shape=shape, confidence=confidence, alternative_shapes=alternatives)

    @staticmethod
    def _normalize(score: int) -> int:
        return min(100, round_half_up(score / MAX_POSSIBLE_SCORE * 100))
