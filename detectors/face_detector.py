"""人脸关键点检测模块，基于 MediaPipe FaceMesh，输出 68 点顺序的关键点"""

import logging
import threading
from typing import Optional

import cv2
import mediapipe as mp
import numpy as np

from models.data_models import FaceLandmarks

logger = logging.getLogger(__name__)

# FaceMesh 468 点 → 68 点（下颌 0-16、眉 17-26、鼻 27-35、眼 36-47、嘴 48-67）
MESH_TO_68_INDICES = [
    # 下颌轮廓
    127, 234, 93, 132, 58, 136, 150, 176, 152, 400, 379, 365, 288, 361, 323, 454, 356,
    # 左眉、右眉
    70, 63, 105, 66, 107,
    336, 296, 334, 293, 300,
    # 鼻梁、鼻底
    168, 197, 5, 4,
    75, 97, 2, 326, 305,
    # 左眼、右眼
    33, 160, 158, 133, 153, 144,
    362, 385, 387, 263, 373, 380,
    # 外唇、内唇
    61, 39, 37, 0, 267, 269, 291, 405, 314, 17, 84, 181,
    78, 82, 13, 312, 308, 317, 14, 87,
]


class FaceMeshHandle:
    """
    FaceMesh 模型的共享句柄。

    首次 acquire() 时加载模型，引用计数归零时释放。加载失败直接抛出，
    不缓存失败状态，下次 acquire() 会重新尝试。
    """

    def __init__(
        self,
        max_num_faces: int = 1,
        min_detection_confidence: float = 0.5,
        static_image_mode: bool = True,
    ):
        self.max_num_faces = max_num_faces
        self.min_detection_confidence = min_detection_confidence
        self.static_image_mode = static_image_mode
        self._mesh = None
        self._ref_count = 0
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._mesh is not None

    @property
    def ref_count(self) -> int:
        return self._ref_count

    def acquire(self):
        """获取模型实例，引用计数加一"""
        with self._lock:
            if self._mesh is None:
                self._mesh = mp.solutions.face_mesh.FaceMesh(
                    static_image_mode=self.static_image_mode,
                    max_num_faces=self.max_num_faces,
                    min_detection_confidence=self.min_detection_confidence,
                    refine_landmarks=False,
                )
                logger.info("FaceMesh 模型已加载")
            self._ref_count += 1
            return self._mesh

    def release(self) -> None:
        """引用计数减一，归零时关闭模型"""
        with self._lock:
            if self._ref_count == 0:
                raise RuntimeError("FaceMeshHandle.release() 调用次数多于 acquire()")
            self._ref_count -= 1
            if self._ref_count == 0 and self._mesh is not None:
                self._mesh.close()
                self._mesh = None
                logger.info("FaceMesh 模型已释放")

    def __enter__(self):
        return self.acquire()

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


class FaceDetector:
    """使用注入的 FaceMeshHandle 检测人脸并返回 68 点关键点"""

    def __init__(self, handle: Optional[FaceMeshHandle] = None):
        """handle 缺省时新建一个仅供本检测器使用的句柄"""
        self._handle = handle or FaceMeshHandle()
        self._mesh = None
        # 懒获取句柄与 process() 共用一把锁，多线程服务下同一时刻只跑一次推理
        self._lock = threading.Lock()

    def detect(self, frame: np.ndarray) -> Optional[FaceLandmarks]:
        """
        检测单张图像中的人脸关键点。线程安全。

        Args:
            frame: BGR 格式的 OpenCV 图像

        Returns:
            FaceLandmarks（68 点，像素坐标）；未检测到人脸时返回 None
        """
        h, w = frame.shape[:2]

        # BGR -> RGB
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False

        with self._lock:
            if self._mesh is None:
                self._mesh = self._handle.acquire()
            results = self._mesh.process(rgb_frame)

        if not results.multi_face_landmarks:
            return None

        face = results.multi_face_landmarks[0]
        mesh_points = face.landmark

        # 归一化坐标转换为像素坐标
        points = [
            (mesh_points[i].x * w, mesh_points[i].y * h)
            for i in MESH_TO_68_INDICES
            if i < len(mesh_points)
        ]

        return FaceLandmarks(all_landmarks=points, image_size=(h, w))

    def detect_file(self, image_path: str) -> Optional[FaceLandmarks]:
        """读取图像文件并检测关键点"""
        image = cv2.imread(image_path)
        if image is None:
            raise ValueError(f"无法读取图像: {image_path}")
        return self.detect(image)

    def close(self):
        """归还模型句柄"""
        with self._lock:
            if self._mesh is not None:
                self._handle.release()
                self._mesh = None
