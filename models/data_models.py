"""核心数据模型定义"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

# 脸型标签，顺序即平分时的优先级
FACE_SHAPES = (
    "Oval",
    "Round",
    "Square",
    "Heart",
    "Diamond",
    "Oblong",
    "Rectangle",
    "Triangle",
)

# 兼容性矩阵中的镜框形状
FRAME_SHAPES = (
    "Round",
    "Square",
    "Rectangle",
    "Aviator",
    "Cat-Eye",
    "Wayfarer",
    "Oval",
)

# 完整 68 点关键点数量，少于该数量走简化分析
FULL_LANDMARK_COUNT = 68


@dataclass
class FaceLandmarks:
    """人脸关键点检测结果（68 点顺序，像素坐标）"""
    all_landmarks: List[Tuple[float, float]]
    image_size: Tuple[int, int] = (0, 0)

    @property
    def is_complete(self) -> bool:
        return len(self.all_landmarks) >= FULL_LANDMARK_COUNT


@dataclass(frozen=True)
class FacialThirds:
    """面部三庭"""
    upper: float
    middle: float
    lower: float
    balanced: bool


@dataclass(frozen=True)
class FacialMeasurements:
    """由关键点推导出的面部测量值（像素），简化模式下部分字段为 None"""
    face_width: float
    face_height: float
    jaw_width: float
    cheekbone_width: float
    forehead_width: float
    chin_width: float
    width_to_height_ratio: float
    forehead_to_jaw_ratio: float
    cheekbone_to_jaw_ratio: float
    jaw_to_face_width_ratio: float
    chin_to_jaw_ratio: float
    forehead_to_chin_ratio: float
    chin_height: Optional[float] = None
    eye_distance: Optional[float] = None
    eye_width: Optional[float] = None
    eye_spacing_ratio: Optional[float] = None
    jaw_angularity: Optional[float] = None
    symmetry_score: Optional[float] = None
    golden_ratio_score: Optional[float] = None
    facial_thirds: Optional[FacialThirds] = None


@dataclass(frozen=True)
class ShapeScore:
    """候选脸型及其得分（0-100）"""
    shape: str
    score: int


@dataclass(frozen=True)
class FaceShapeResult:
    """脸型分类结果"""
    shape: str
    confidence: int
    alternative_shapes: List[ShapeScore] = field(default_factory=list)


@dataclass(frozen=True)
class FaceAnalysis:
    """一次完整分析的输出：分类结果 + 测量值"""
    result: FaceShapeResult
    measurements: FacialMeasurements
    landmark_count: int
    simplified: bool


@dataclass(frozen=True)
class FrameMeasurements:
    """镜框物理尺寸（mm / g）"""
    lens_width: float
    bridge_width: float
    temple_length: float
    lens_height: float
    total_width: float
    frame_weight: Optional[float] = None
    frame_depth: Optional[float] = None
    rim_thickness: Optional[float] = None

    @property
    def size_notation(self) -> str:
        """标准镜框尺寸标注，例如 52-18-140"""
        return f"{self.lens_width:g}-{self.bridge_width:g}-{self.temple_length:g}"

    @property
    def size_category(self) -> str:
        if self.total_width < 130:
            return "Small"
        if self.total_width < 140:
            return "Medium"
        return "Large"


@dataclass(frozen=True)
class FaceMeasurements:
    """适配度预测所需的面部尺寸（mm）"""
    face_width: float
    face_height: float
    nose_bridge_width: float
    temple_to_temple_distance: float
    face_shape: str
    cheekbone_width: float
    jaw_width: float
    forehead_width: float


@dataclass(frozen=True)
class FitComponent:
    """单项适配结果"""
    score: int
    status: str
    message: str


@dataclass(frozen=True)
class FitPredictionResult:
    """镜框适配度预测结果"""
    overall_score: int
    width_fit: FitComponent
    height_fit: FitComponent
    bridge_fit: FitComponent
    style_fit: FitComponent
    recommendations: List[str]

    @property
    def overall_label(self) -> str:
        if self.overall_score >= 90:
            return "Excellent Fit"
        if self.overall_score >= 80:
            return "Good Fit"
        if self.overall_score >= 70:
            return "Acceptable Fit"
        return "Poor Fit"


@dataclass(frozen=True)
class Frame:
    """镜框目录条目"""
    id: int
    name: str
    description: str
    price: float
    frame_shape: str
    category: str
    measurements: FrameMeasurements
    face_shapes: List[str] = field(default_factory=list)
    colors: List[str] = field(default_factory=list)
    bestseller: bool = False


@dataclass(frozen=True)
class StyleGuide:
    """脸型对应的镜框风格建议"""
    shape: str
    description: str
    frames: List[str]
    colors: List[str]
    avoid: List[str]
    top_styles: List[str]
