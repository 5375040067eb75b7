"""镜框目录模块：加载、筛选并按适配度排序镜框"""

import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from evaluators.frame_fit_scorer import FrameFitScorer
from models.data_models import FaceMeasurements, FitPredictionResult, Frame, FrameMeasurements

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "frames.json")

CATEGORIES = ("Casual", "Professional", "Fashion", "Vintage")

# 价格区间筛选项 → (下限, 上限)，None 表示不限
PRICE_RANGES = {
    "Under $120": (None, 120),
    "$120-$150": (120, 150),
    "Over $150": (150, None),
}


def _parse_frame(entry: Dict[str, Any]) -> Frame:
    """把一条 JSON 记录转换为 Frame"""
    try:
        measurements = FrameMeasurements(**entry["measurements"])
        return Frame(
            id=int(entry["id"]),
            name=entry["name"],
            description=entry.get("description", ""),
            price=float(entry["price"]),
            frame_shape=entry.get("frame_shape", ""),
            category=entry.get("category", ""),
            measurements=measurements,
            face_shapes=list(entry.get("face_shapes", [])),
            colors=list(entry.get("colors", [])),
            bestseller=bool(entry.get("bestseller", False)),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"镜框记录格式错误: {entry!r} ({e})") from e


def _in_price_range(price: float, price_range: str) -> bool:
    if price_range not in PRICE_RANGES:
        raise ValueError(f"未知价格区间: {price_range}")
    low, high = PRICE_RANGES[price_range]
    if price_range == "Under $120":
        return price < high
    if price_range == "Over $150":
        return price > low
    return low <= price <= high


class FrameCatalog:
    """内存中的镜框目录"""

    def __init__(self, frames: List[Frame], scorer: Optional[FrameFitScorer] = None):
        self._frames = {frame.id: frame for frame in frames}
        self._scorer = scorer or FrameFitScorer()

    @classmethod
    def load(cls, path: str = DEFAULT_CATALOG_PATH, scorer: Optional[FrameFitScorer] = None) -> "FrameCatalog":
        """
        从 JSON 文件加载目录。

        Raises:
            FileNotFoundError: 文件不存在
            ValueError: JSON 格式错误或记录缺少必要字段
        """
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"目录文件格式错误 {path}: {e}") from e

        if not isinstance(data, list):
            raise ValueError(f"目录文件应为列表: {path}")

        frames = [_parse_frame(entry) for entry in data]
        logger.info("镜框目录已加载: %d 款 (%s)", len(frames), path)
        return cls(frames, scorer=scorer)

    def __len__(self) -> int:
        return len(self._frames)

    def all(self) -> List[Frame]:
        return sorted(self._frames.values(), key=lambda f: f.id)

    def get(self, frame_id: int) -> Frame:
        """按 id 获取镜框，不存在时抛出 KeyError"""
        if frame_id not in self._frames:
            raise KeyError(f"镜框不存在: {frame_id}")
        return self._frames[frame_id]

    def filter(
        self,
        face_shape: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        price_range: Optional[str] = None,
    ) -> List[Frame]:
        """
        按条件筛选，"All" 或 None 表示不限。

        Args:
            face_shape: 推荐脸型
            category: 分类
            search: 名称或描述中包含的文字（不区分大小写）
            price_range: PRICE_RANGES 中的一项
        """
        results = []
        needle = search.lower() if search else None

        for frame in self.all():
            if face_shape and face_shape != "All" and face_shape not in frame.face_shapes:
                continue
            if category and category != "All" and frame.category != category:
                continue
            if needle and needle not in frame.name.lower() and needle not in frame.description.lower():
                continue
            if price_range and price_range != "All" and not _in_price_range(frame.price, price_range):
                continue
            results.append(frame)

        return results

    def predict_fit(self, face: FaceMeasurements, frame_id: int) -> FitPredictionResult:
        frame = self.get(frame_id)
        return self._scorer.predict(face, frame.measurements, frame.frame_shape)

    def rank_by_fit(
        self, face: FaceMeasurements, limit: Optional[int] = None
    ) -> List[Tuple[Frame, FitPredictionResult]]:
        """按综合适配分从高到低排序，同分按 id 升序"""
        ranked = [
            (frame, self._scorer.predict(face, frame.measurements, frame.frame_shape))
            for frame in self.all()
        ]
        ranked.sort(key=lambda item: (-item[1].overall_score, item[0].id))
        return ranked[:limit] if limit else ranked
