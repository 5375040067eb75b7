"""脸型分析与镜框适配系统入口文件"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import Optional

import cv2
import numpy as np

from catalog.frame_catalog import DEFAULT_CATALOG_PATH, FrameCatalog
from classifiers.face_shape_classifier import FaceShapeClassifier
from detectors.face_detector import FaceDetector, FaceMeshHandle
from detectors.geometry import DegenerateGeometryError
from evaluators.frame_fit_scorer import FrameFitScorer, face_measurements_from_analysis
from evaluators.style_guide import get_style_guide
from models.data_models import FaceAnalysis, FaceMeasurements, FitPredictionResult, Frame

logger = logging.getLogger(__name__)

# 默认配置
_DEFAULTS = {
    "assumed_ipd_mm": 62.0,
    "default_nose_bridge_width_mm": 16.0,
    "min_detection_confidence": 0.5,
    "catalog_path": None,
    "max_ranked_frames": 5,
}


def frame_to_dict(frame: Frame) -> dict:
    data = asdict(frame)
    data["measurements"]["size_notation"] = frame.measurements.size_notation
    data["measurements"]["size_category"] = frame.measurements.size_category
    return data


def fit_to_dict(fit: FitPredictionResult) -> dict:
    data = asdict(fit)
    data["overall_label"] = fit.overall_label
    return data


class AnalysisSystem:
    """脸型分析系统主程序，串联关键点检测、脸型分类、镜框目录与适配评分。"""

    def __init__(self, config_path=None, handle: Optional[FaceMeshHandle] = None):
        self.config = self._load_config(config_path)

        self.handle = handle or FaceMeshHandle(
            min_detection_confidence=self.config["min_detection_confidence"],
        )
        self.face_detector = FaceDetector(self.handle)
        self.classifier = FaceShapeClassifier()
        self.scorer = FrameFitScorer()
        self.catalog = FrameCatalog.load(
            self.config["catalog_path"] or DEFAULT_CATALOG_PATH, scorer=self.scorer
        )

    @staticmethod
    def _load_config(config_path):
        """从 JSON 配置文件加载参数，缺失字段使用默认值。"""
        config = dict(_DEFAULTS)

        if config_path is None:
            return config

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            print(f"警告: 配置文件不存在 {config_path}，使用默认配置")
            return config
        except json.JSONDecodeError:
            print(f"警告: 配置文件格式错误 {config_path}，使用默认配置")
            return config

        for key in _DEFAULTS:
            if key in data and data[key] is not None:
                config[key] = data[key]

        return config

    def mm_per_pixel(self, analysis: FaceAnalysis) -> Optional[float]:
        """以假定瞳距换算像素比例；简化模式下没有眼距，返回 None"""
        eye_distance = analysis.measurements.eye_distance
        if not eye_distance or eye_distance <= 0:
            return None
        return self.config["assumed_ipd_mm"] / eye_distance

    def analyze_image(self, image: np.ndarray, frame_id: Optional[int] = None) -> Optional[dict]:
        """
        分析单张图像。

        Args:
            image: BGR 格式的 OpenCV 图像
            frame_id: 可选，需要单独评估的目录镜框 id

        Returns:
            可 JSON 序列化的报告；未检测到人脸时返回 None

        Raises:
            DegenerateGeometryError: 关键点几何退化
            KeyError: frame_id 不在目录中
        """
        landmarks = self.face_detector.detect(image)
        if landmarks is None:
            logger.warning("未检测到人脸")
            return None

        analysis = self.classifier.analyze(landmarks)
        scale = self.mm_per_pixel(analysis)
        face = face_measurements_from_analysis(
            analysis,
            mm_per_pixel=scale,
            nose_bridge_width=self.config["default_nose_bridge_width_mm"],
        )
        guide = get_style_guide(analysis.result.shape)

        report = {
            "face_shape": analysis.result.shape,
            "confidence": analysis.result.confidence,
            "alternative_shapes": [asdict(s) for s in analysis.result.alternative_shapes],
            "simplified": analysis.simplified,
            "landmark_count": analysis.landmark_count,
            "measurements": asdict(analysis.measurements),
            "mm_per_pixel": scale,
            "face_measurements_mm": asdict(face),
            "style_guide": asdict(guide),
            "recommended_frames": [
                {"frame": frame_to_dict(frame), "fit": fit_to_dict(fit)}
                for frame, fit in self.catalog.rank_by_fit(face, limit=self.config["max_ranked_frames"])
            ],
        }

        if frame_id is not None:
            report["fit"] = fit_to_dict(self.catalog.predict_fit(face, frame_id))

        return report

    def analyze_file(self, image_path: str, frame_id: Optional[int] = None) -> Optional[dict]:
        """读取图像文件并分析，无法读取时抛出 ValueError"""
        image = cv2.imread(image_path)
        if image is None:
            raise ValueError(f"无法读取图像: {image_path}")
        return self.analyze_image(image, frame_id=frame_id)

    def predict_fit(self, face: FaceMeasurements, frame_id: int) -> FitPredictionResult:
        return self.catalog.predict_fit(face, frame_id)

    def close(self):
        """归还 FaceMesh 句柄。"""
        self.face_detector.close()


def _run_analyze(args) -> int:
    system = None
    try:
        system = AnalysisSystem(config_path=args.config)
        report = system.analyze_file(args.image, frame_id=args.frame)
    except DegenerateGeometryError as e:
        print(f"错误: 关键点几何退化，无法判断脸型 ({e})")
        return 1
    except FileNotFoundError as e:
        print(f"错误: 文件不存在 {e.filename or e}")
        return 1
    except ValueError as e:
        print(f"错误: {e}")
        return 1
    except KeyError as e:
        print(f"错误: {e.args[0] if e.args else e}")
        return 1
    finally:
        if system is not None:
            system.close()

    if report is None:
        print("未检测到人脸，请使用正面、光线充足的照片")
        return 1

    print(json.dumps(report, indent=2, ensure_ascii=False))
    return 0


def _run_frames(args) -> int:
    config = AnalysisSystem._load_config(args.config)
    try:
        catalog = FrameCatalog.load(config["catalog_path"] or DEFAULT_CATALOG_PATH)
        frames = catalog.filter(
            face_shape=args.face_shape,
            category=args.category,
            search=args.search,
            price_range=args.price_range,
        )
    except FileNotFoundError as e:
        print(f"错误: 文件不存在 {e.filename or e}")
        return 1
    except ValueError as e:
        print(f"错误: {e}")
        return 1

    print(json.dumps([frame_to_dict(f) for f in frames], indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="脸型分析与镜框适配系统")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON 配置文件路径",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="输出 DEBUG 日志",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="分析照片中的脸型并推荐镜框")
    analyze.add_argument("image", help="图像文件路径")
    analyze.add_argument("--frame", type=int, default=None, help="需要评估的目录镜框 id")
    analyze.set_defaults(func=_run_analyze)

    frames = subparsers.add_parser("frames", help="列出并筛选镜框目录")
    frames.add_argument("--face-shape", default=None, help="推荐脸型")
    frames.add_argument("--category", default=None, help="分类")
    frames.add_argument("--search", default=None, help="名称或描述关键字")
    frames.add_argument("--price-range", default=None, help='价格区间，如 "Under $120"')
    frames.set_defaults(func=_run_frames)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
