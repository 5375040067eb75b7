"""Flask Web API - 脸型分析与镜框适配系统"""

import logging
from dataclasses import asdict

import cv2
import numpy as np
from flask import Flask, jsonify, request

from detectors.geometry import DegenerateGeometryError
from evaluators.frame_fit_scorer import DEFAULT_FACE_MEASUREMENTS
from evaluators.style_guide import get_style_guide
from main import AnalysisSystem, fit_to_dict, frame_to_dict
from models.data_models import FaceMeasurements, FrameMeasurements

logger = logging.getLogger(__name__)

app = Flask(__name__)

# 全局分析系统实例，FaceMesh 在首次分析时才加载
system = AnalysisSystem()


def _error(message, status):
    return jsonify({"success": False, "message": message}), status


def _decode_image(file_storage):
    """把上传的文件解码为 BGR 图像，失败时抛出 ValueError"""
    buffer = np.frombuffer(file_storage.read(), dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR) if buffer.size else None
    if image is None:
        raise ValueError("无法解码上传的图像")
    return image


# ---- Flask 路由 ----

@app.route("/api/analyze", methods=["POST"])
def api_analyze():
    """上传照片（字段 image），可选 frame_id 同时评估某款镜框。"""
    if "image" not in request.files:
        return _error("缺少图像文件", 400)

    frame_id = request.form.get("frame_id", None, type=int)

    try:
        image = _decode_image(request.files["image"])
    except ValueError as e:
        return _error(str(e), 400)

    try:
        report = system.analyze_image(image, frame_id=frame_id)
    except DegenerateGeometryError as e:
        return _error(f"关键点几何退化: {e}", 422)
    except KeyError:
        return _error(f"镜框不存在: {frame_id}", 404)

    if report is None:
        return _error("未检测到人脸", 422)

    report["success"] = True
    return jsonify(report)


@app.route("/api/fit", methods=["POST"])
def api_fit():
    """
    JSON 请求体:
        face: FaceMeasurements 字段（缺失字段用平均值）
        frame_id: 目录镜框 id；或 frame + frame_shape 直接给出镜框尺寸
    """
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return _error("请求体必须是 JSON 对象", 400)

    face_payload = data.get("face") or {}
    if not isinstance(face_payload, dict):
        return _error("face 必须是 JSON 对象", 400)
    frame_payload = data.get("frame")
    if frame_payload is not None and not isinstance(frame_payload, dict):
        return _error("frame 必须是 JSON 对象", 400)

    try:
        face_fields = dict(DEFAULT_FACE_MEASUREMENTS)
        face_fields.update({k: v for k, v in face_payload.items() if k in face_fields})
        face = FaceMeasurements(**face_fields)

        if data.get("frame_id") is not None:
            fit = system.predict_fit(face, int(data["frame_id"]))
        elif frame_payload is not None:
            frame = FrameMeasurements(**frame_payload)
            fit = system.scorer.predict(face, frame, data.get("frame_shape", ""))
        else:
            return _error("需要 frame_id 或 frame", 400)
    except KeyError:
        return _error(f"镜框不存在: {data.get('frame_id')}", 404)
    except DegenerateGeometryError as e:
        return _error(f"尺寸无效: {e}", 422)
    except (TypeError, ValueError) as e:
        return _error(f"参数错误: {e}", 400)

    result = fit_to_dict(fit)
    result["success"] = True
    return jsonify(result)


@app.route("/api/frames")
def api_frames():
    try:
        frames = system.catalog.filter(
            face_shape=request.args.get("face_shape"),
            category=request.args.get("category"),
            search=request.args.get("search"),
            price_range=request.args.get("price_range"),
        )
    except ValueError as e:
        return _error(str(e), 400)
    return jsonify({"frames": [frame_to_dict(f) for f in frames], "total": len(frames)})


@app.route("/api/frames/<int:frame_id>")
def api_frame(frame_id):
    try:
        frame = system.catalog.get(frame_id)
    except KeyError:
        return _error(f"镜框不存在: {frame_id}", 404)
    return jsonify(frame_to_dict(frame))


@app.route("/api/style-guide/<shape>")
def api_style_guide(shape):
    return jsonify(asdict(get_style_guide(shape)))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(host="0.0.0.0", port=5000, debug=False, threaded=True)
