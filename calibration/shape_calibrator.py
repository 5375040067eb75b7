"""脸型校准模块，用带标签的数据集统计比例分布并评估规则表的分类效果"""

import argparse
import json
import logging
import math
import os
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sklearn.metrics import accuracy_score, confusion_matrix, recall_score

from classifiers.face_shape_classifier import FaceShapeClassifier
from detectors.face_detector import FaceDetector, FaceMeshHandle
from detectors.geometry import DegenerateGeometryError
from models.data_models import FACE_SHAPES, FacialMeasurements

logger = logging.getLogger(__name__)

# 参与统计的比例字段
RATIO_FIELDS = (
    "width_to_height_ratio",
    "forehead_to_jaw_ratio",
    "cheekbone_to_jaw_ratio",
    "jaw_to_face_width_ratio",
    "chin_to_jaw_ratio",
    "forehead_to_chin_ratio",
    "jaw_angularity",
)

_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp")


def compute_stats(values: list) -> dict:
    """
    计算一组数值的统计信息。

    Args:
        values: 非空浮点数列表

    Returns:
        {"mean": float, "std": float, "min": float, "max": float}
    """
    n = len(values)
    mean = sum(values) / n
    std = math.sqrt(sum((x - mean) ** 2 for x in values) / n)
    return {
        "mean": mean,
        "std": std,
        "min": min(values),
        "max": max(values),
    }


class ShapeCalibrator:
    """收集 (测量值, 标签) 样本，统计各脸型的比例分布并评估分类器"""

    def __init__(self, classifier: Optional[FaceShapeClassifier] = None):
        self.classifier = classifier or FaceShapeClassifier()
        self._samples: List[Tuple[FacialMeasurements, str]] = []
        self._dataset_path: str = ""
        self._evaluation: Optional[dict] = None

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    def add_sample(self, measurements: FacialMeasurements, label: str) -> None:
        """添加一条样本，标签必须是已知脸型"""
        if label not in FACE_SHAPES:
            raise ValueError(f"未知脸型标签: {label}")
        self._samples.append((measurements, label))
        self._evaluation = None

    def load_dataset(self, dataset_path: str, handle: Optional[FaceMeshHandle] = None) -> None:
        """
        加载数据集：每个脸型一个子目录（Oval/、Round/ ...），目录名即标签。

        无法读取、无人脸或几何退化的图像会被跳过并记录警告。

        Args:
            dataset_path: 数据集根目录路径
            handle: 共享的 FaceMesh 句柄，缺省时新建
        """
        if not os.path.isdir(dataset_path):
            raise ValueError(f"数据集路径无效: {dataset_path}")

        self._dataset_path = dataset_path
        detector = FaceDetector(handle or FaceMeshHandle())
        before = len(self._samples)

        try:
            for label in FACE_SHAPES:
                dir_path = os.path.join(dataset_path, label)
                if not os.path.isdir(dir_path):
                    logger.warning("子目录不存在: %s", dir_path)
                    continue
                self._process_directory(dir_path, label, detector)
        finally:
            detector.close()

        logger.info("数据集加载完成: 新增样本 %d 条", len(self._samples) - before)

    def _process_directory(self, dir_path: str, label: str, detector: FaceDetector) -> None:
        for filename in sorted(os.listdir(dir_path)):
            if not filename.lower().endswith(_IMAGE_EXTENSIONS):
                continue
            filepath = os.path.join(dir_path, filename)
            measurements = self._extract_measurements(filepath, detector)
            if measurements is not None:
                self.add_sample(measurements, label)

    def _extract_measurements(self, filepath: str, detector: FaceDetector) -> Optional[FacialMeasurements]:
        """从单张图像提取测量值，失败时返回 None"""
        try:
            landmarks = detector.detect_file(filepath)
        except ValueError:
            logger.warning("无法读取图像: %s", filepath)
            return None

        if landmarks is None or not landmarks.is_complete:
            logger.warning("未检测到完整人脸: %s", filepath)
            return None

        try:
            return self.classifier.analyze(landmarks).measurements
        except DegenerateGeometryError as e:
            logger.warning("几何退化，跳过 %s: %s", filepath, e)
            return None

    def compute_statistics(self) -> Dict[str, Dict[str, dict]]:
        """
        计算各脸型的比例分布统计。

        Returns:
            {"Oval": {"width_to_height_ratio": {mean, std, min, max}, ...}, ...}
        """
        groups: Dict[str, Dict[str, list]] = {}
        for measurements, label in self._samples:
            fields = groups.setdefault(label, {})
            for name in RATIO_FIELDS:
                value = getattr(measurements, name)
                if value is not None:
                    fields.setdefault(name, []).append(value)

        return {
            label: {name: compute_stats(values) for name, values in fields.items()}
            for label, fields in groups.items()
        }

    def evaluate(self) -> dict:
        """
        用当前规则表对全部样本分类，计算准确率、宏平均召回率和混淆矩阵。

        Returns:
            {"accuracy", "macro_recall", "labels", "confusion_matrix", "sample_count"}
        """
        if not self._samples:
            raise ValueError("没有样本，无法评估")

        y_true = [label for _, label in self._samples]
        y_pred = [self.classifier.classify(m).shape for m, _ in self._samples]
        labels = [shape for shape in FACE_SHAPES if shape in y_true or shape in y_pred]

        matrix = confusion_matrix(y_true, y_pred, labels=labels)

        self._evaluation = {
            "accuracy": float(accuracy_score(y_true, y_pred)),
            "macro_recall": float(
                recall_score(y_true, y_pred, labels=labels, average="macro", zero_division=0)
            ),
            "labels": labels,
            "confusion_matrix": matrix.tolist(),
            "sample_count": len(self._samples),
        }
        return self._evaluation

    def export_report(self, output_path: str) -> None:
        """
        导出 JSON 校准报告。

        Args:
            output_path: 输出 JSON 文件路径
        """
        if self._evaluation is None:
            self.evaluate()

        report = {
            "evaluation": self._evaluation,
            "statistics": self.compute_statistics(),
            "calibration_info": {
                "calibrated_at": datetime.now().isoformat(),
                "dataset": self._dataset_path,
            },
        }

        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=4, ensure_ascii=False)

        logger.info("校准报告已导出: %s", output_path)


def main(argv=None):
    parser = argparse.ArgumentParser(description="脸型规则表校准")
    parser.add_argument("dataset", help="数据集根目录，每个脸型一个子目录")
    parser.add_argument("--output", default="calibration_report.json", help="JSON 报告输出路径")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)

    calibrator = ShapeCalibrator()
    calibrator.load_dataset(args.dataset)
    if calibrator.sample_count == 0:
        print("警告: 没有可用样本，未生成报告")
        return 1

    result = calibrator.evaluate()
    print(f"准确率: {result['accuracy']:.3f}  宏平均召回率: {result['macro_recall']:.3f}")
    calibrator.export_report(args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
