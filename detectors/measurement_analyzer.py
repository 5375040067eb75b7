"""面部测量模块，将 68 点关键点转换为宽高、比例、对称性等测量值"""

import logging
import math
from typing import List, Tuple

from detectors.geometry import (
    DegenerateGeometryError,
    clamp,
    horizontal_span,
    mean,
    midpoint,
    safe_ratio,
)
from models.data_models import FacialMeasurements, FacialThirds

logger = logging.getLogger(__name__)

# 68 点区域索引
JAW_INDICES = list(range(0, 17))
LEFT_BROW_INDICES = list(range(17, 22))
RIGHT_BROW_INDICES = list(range(22, 27))
NOSE_BRIDGE_INDICES = [27, 28, 29, 30]
NOSE_TIP = 30
CHIN = 8
LOWER_LIP = 57
LEFT_BROW_PEAK = 19
RIGHT_BROW_PEAK = 24
LEFT_EYE_CORNERS = (36, 39)
RIGHT_EYE_CORNERS = (42, 45)

GOLDEN_RATIO = 1.618
# 眉宽到额宽的经验系数
FOREHEAD_SCALE = 1.1
# 三庭差值不超过脸高的该比例视为均衡
THIRDS_TOLERANCE = 0.05

# 简化模式下各宽度相对于包围盒宽度的比例
_SIMPLIFIED_PROPORTIONS = {
    "forehead": 0.75 / 0.8,
    "cheekbone": 1.0,
    "jaw": 0.9,
    "chin": 0.45 / 0.8,
}


class MeasurementAnalyzer:
    """从关键点计算面部测量值，纯函数式，不保存状态"""

    def measure(self, points: List[Tuple[float, float]]) -> FacialMeasurements:
        """
        计算完整 68 点的面部测量值。

        Args:
            points: 68 个 (x, y) 像素坐标，顺序固定

        Returns:
            FacialMeasurements

        Raises:
            DegenerateGeometryError: 任一比例的分母退化
        """
        if len(points) < 68:
            raise ValueError(f"完整测量需要 68 个关键点，实际 {len(points)} 个")

        jaw_width = horizontal_span(points[3], points[13])
        cheekbone_width = horizontal_span(points[4], points[12])
        chin_width = horizontal_span(points[5], points[11])
        forehead_width = horizontal_span(points[17], points[26]) * FOREHEAD_SCALE
        contour_width = horizontal_span(points[0], points[16])
        face_width = max(contour_width, forehead_width, cheekbone_width, jaw_width)

        brow_y = (points[LEFT_BROW_PEAK][1] + points[RIGHT_BROW_PEAK][1]) / 2.0
        face_height = points[CHIN][1] - brow_y
        chin_height = points[CHIN][1] - points[LOWER_LIP][1]
        if face_height <= 0.0:
            raise DegenerateGeometryError(f"下巴不在眉线下方，脸高为 {face_height}")

        left_eye_center = midpoint(*(points[i] for i in LEFT_EYE_CORNERS))
        right_eye_center = midpoint(*(points[i] for i in RIGHT_EYE_CORNERS))
        eye_distance = math.dist(left_eye_center, right_eye_center)
        eye_width = (
            math.dist(*(points[i] for i in LEFT_EYE_CORNERS))
            + math.dist(*(points[i] for i in RIGHT_EYE_CORNERS))
        ) / 2.0

        width_to_height = safe_ratio(face_width, face_height, "width_to_height_ratio")

        measurements = FacialMeasurements(
            face_width=face_width,
            face_height=face_height,
            jaw_width=jaw_width,
            cheekbone_width=cheekbone_width,
            forehead_width=forehead_width,
            chin_width=chin_width,
            width_to_height_ratio=width_to_height,
            forehead_to_jaw_ratio=safe_ratio(forehead_width, jaw_width, "forehead_to_jaw_ratio"),
            cheekbone_to_jaw_ratio=safe_ratio(cheekbone_width, jaw_width, "cheekbone_to_jaw_ratio"),
            jaw_to_face_width_ratio=safe_ratio(jaw_width, face_width, "jaw_to_face_width_ratio"),
            chin_to_jaw_ratio=safe_ratio(chin_width, jaw_width, "chin_to_jaw_ratio"),
            forehead_to_chin_ratio=safe_ratio(forehead_width, chin_width, "forehead_to_chin_ratio"),
            chin_height=chin_height,
            eye_distance=eye_distance,
            eye_width=eye_width,
            eye_spacing_ratio=safe_ratio(eye_distance, face_width, "eye_spacing_ratio"),
            jaw_angularity=self.calculate_jaw_angularity(points),
            symmetry_score=self.calculate_symmetry(points),
            golden_ratio_score=self.calculate_golden_ratio_score(face_width, face_height),
            facial_thirds=self.calculate_facial_thirds(points, brow_y, face_height),
        )

        logger.debug(
            "面部测量: 宽=%.1f 高=%.1f 下颌=%.1f 颧骨=%.1f 额头=%.1f 宽高比=%.3f",
            face_width, face_height, jaw_width, cheekbone_width,
            forehead_width, width_to_height,
        )
        return measurements

    def measure_simplified(self, points: List[Tuple[float, float]]) -> FacialMeasurements:
        """
        关键点不足 68 个时的降级测量：仅依据关键点包围盒按固定比例估算。

        Raises:
            DegenerateGeometryError: 关键点少于 3 个或包围盒退化
        """
        if len(points) < 3:
            raise DegenerateGeometryError(f"关键点过少，无法估算脸型: {len(points)} 个")

        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        face_width = max(xs) - min(xs)
        face_height = max(ys) - min(ys)

        forehead_width = face_width * _SIMPLIFIED_PROPORTIONS["forehead"]
        cheekbone_width = face_width * _SIMPLIFIED_PROPORTIONS["cheekbone"]
        jaw_width = face_width * _SIMPLIFIED_PROPORTIONS["jaw"]
        chin_width = face_width * _SIMPLIFIED_PROPORTIONS["chin"]

        width_to_height = safe_ratio(face_width, face_height, "width_to_height_ratio")

        logger.debug("简化测量: 包围盒 %.1f x %.1f, 关键点 %d 个", face_width, face_height, len(points))

        return FacialMeasurements(
            face_width=face_width,
            face_height=face_height,
            jaw_width=jaw_width,
            cheekbone_width=cheekbone_width,
            forehead_width=forehead_width,
            chin_width=chin_width,
            width_to_height_ratio=width_to_height,
            forehead_to_jaw_ratio=safe_ratio(forehead_width, jaw_width, "forehead_to_jaw_ratio"),
            cheekbone_to_jaw_ratio=safe_ratio(cheekbone_width, jaw_width, "cheekbone_to_jaw_ratio"),
            jaw_to_face_width_ratio=safe_ratio(jaw_width, face_width, "jaw_to_face_width_ratio"),
            chin_to_jaw_ratio=safe_ratio(chin_width, jaw_width, "chin_to_jaw_ratio"),
            forehead_to_chin_ratio=safe_ratio(forehead_width, chin_width, "forehead_to_chin_ratio"),
            golden_ratio_score=self.calculate_golden_ratio_score(face_width, face_height),
        )

    @staticmethod
    def calculate_symmetry(points: List[Tuple[float, float]]) -> float:
        """
        计算左右对称性得分。

        以鼻梁点 27-30 的平均 x 为中线，比较每对下颌点 (i, 16-i)
        到中线的距离，取 min/max 后求平均。

        Returns:
            [0, 1] 之间的得分，1 为完全对称
        """
        midline_x = mean(points[i][0] for i in NOSE_BRIDGE_INDICES)

        pair_scores = []
        for i in range(8):
            left = abs(midline_x - points[i][0])
            right = abs(points[16 - i][0] - midline_x)
            longer = max(left, right)
            if longer == 0.0:
                pair_scores.append(1.0)
                continue
            pair_scores.append(min(left, right) / longer)

        return clamp(mean(pair_scores))

    @staticmethod
    def calculate_golden_ratio_score(face_width: float, face_height: float) -> float:
        """公式: 1 - |height/width - 1.618| / 1.618，截断到 [0, 1]"""
        ratio = safe_ratio(face_height, face_width, "height_to_width_ratio")
        return clamp(1.0 - abs(ratio - GOLDEN_RATIO) / GOLDEN_RATIO)

    @staticmethod
    def calculate_jaw_angularity(points: List[Tuple[float, float]]) -> float:
        """
        下颌角度：3→5 与 13→11 两段连线与水平线的夹角（折叠到 0-90 度）取平均。

        下颌线越接近竖直值越大（方下颌），越平缓值越小（圆润或收窄的下颌）。
        """
        def slope_angle(p1, p2):
            return math.degrees(math.atan2(abs(p2[1] - p1[1]), abs(p2[0] - p1[0])))

        return (slope_angle(points[3], points[5]) + slope_angle(points[13], points[11])) / 2.0

    @staticmethod
    def calculate_facial_thirds(
        points: List[Tuple[float, float]], brow_y: float, face_height: float
    ) -> FacialThirds:
        """
        眉线→鼻尖、鼻尖→下唇、下唇→下巴三段高度。

        分段点取鼻尖 (30) 和下唇中点 (57)，不取鼻梁顶 (27) 和左嘴角 (48)。
        上庭从眉线量起，鼻梁顶紧贴眉线会让上庭几乎为零；嘴角高度随表情变化。
        因此 third_ratio 与按鼻梁顶、嘴角分段的算法不可直接比较。
        """
        upper = points[NOSE_TIP][1] - brow_y
        middle = points[LOWER_LIP][1] - points[NOSE_TIP][1]
        lower = points[CHIN][1] - points[LOWER_LIP][1]

        segments = (upper, middle, lower)
        balanced = max(segments) - min(segments) <= THIRDS_TOLERANCE * face_height

        return FacialThirds(upper=upper, middle=middle, lower=lower, balanced=balanced)
