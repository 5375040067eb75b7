"""测试用的合成 68 点人脸与测量值构造函数"""

from models.data_models import FacialMeasurements, FacialThirds


def make_landmarks(
    face_half=70.0,
    jaw_half=60.0,
    cheek_half=62.0,
    chin_half=30.0,
    brow_half=55.0,
    brow_y=100.0,
    nose_y=160.0,
    lip_y=215.0,
    chin_y=260.0,
    cx=200.0,
    eye_half_distance=32.0,
    eye_half_width=12.0,
):
    """
    构造左右对称的 68 点人脸（像素坐标，y 向下）。

    默认参数下: 脸宽 140、脸高 160、下颌 120、颧骨 124、下巴 60、
    额头 121、眼距 64、三庭 60/55/45。
    """
    points = [None] * 68
    jaw_y = chin_y - 60.0
    chin_corner_y = chin_y - 20.0

    # 下颌轮廓，(左索引, 右索引, 半宽, y)
    contour = [
        (0, 16, face_half, brow_y + 20.0),
        (1, 15, face_half, brow_y + 45.0),
        (2, 14, face_half * 0.97, brow_y + 70.0),
        (3, 13, jaw_half, jaw_y),
        (4, 12, cheek_half, jaw_y + 10.0),
        (5, 11, chin_half, chin_corner_y),
        (6, 10, chin_half * 0.7, chin_corner_y + 8.0),
        (7, 9, chin_half * 0.35, chin_y - 4.0),
    ]
    for left, right, half, y in contour:
        points[left] = (cx - half, y)
        points[right] = (cx + half, y)
    points[8] = (cx, chin_y)

    # 眉毛
    for k in range(5):
        offset = brow_half - (brow_half - 10.0) * k / 4.0
        points[17 + k] = (cx - offset, brow_y)
        points[26 - k] = (cx + offset, brow_y)

    # 鼻梁 27-30，鼻底 31-35
    for k in range(4):
        points[27 + k] = (cx, brow_y + 10.0 + (nose_y - brow_y - 10.0) * k / 3.0)
    for k in range(5):
        points[31 + k] = (cx - 10.0 + 5.0 * k, nose_y + 5.0)

    # 眼睛
    eye_y = brow_y + 20.0
    for start, center_x in ((36, cx - eye_half_distance), (42, cx + eye_half_distance)):
        points[start] = (center_x - eye_half_width, eye_y)
        points[start + 1] = (center_x - 4.0, eye_y - 4.0)
        points[start + 2] = (center_x + 4.0, eye_y - 4.0)
        points[start + 3] = (center_x + eye_half_width, eye_y)
        points[start + 4] = (center_x + 4.0, eye_y + 4.0)
        points[start + 5] = (center_x - 4.0, eye_y + 4.0)

    # 外唇 48-59（57 为下唇中点），内唇 60-67
    mouth_y = lip_y - 10.0
    outer = [
        (-25.0, 0.0), (-15.0, -6.0), (-6.0, -8.0), (0.0, -8.0), (6.0, -8.0), (15.0, -6.0),
        (25.0, 0.0), (15.0, 7.0), (6.0, 9.0), (0.0, 10.0), (-6.0, 9.0), (-15.0, 7.0),
    ]
    for k, (dx, dy) in enumerate(outer):
        points[48 + k] = (cx + dx, mouth_y + dy)
    inner = [
        (-18.0, 0.0), (-6.0, -3.0), (0.0, -3.0), (6.0, -3.0),
        (18.0, 0.0), (6.0, 3.0), (0.0, 3.0), (-6.0, 3.0),
    ]
    for k, (dx, dy) in enumerate(inner):
        points[60 + k] = (cx + dx, mouth_y + dy)

    return points


def make_measurements(
    width_to_height=0.7,
    forehead_to_jaw=1.1,
    cheekbone_to_jaw=1.05,
    jaw_to_face=0.8,
    chin_to_jaw=0.65,
    jaw_angularity=75.0,
    thirds=(50.0, 50.0, 50.0),
):
    """直接由比例构造 FacialMeasurements，下颌宽固定为 100"""
    jaw = 100.0
    forehead = forehead_to_jaw * jaw
    cheekbone = cheekbone_to_jaw * jaw
    chin = chin_to_jaw * jaw
    face_width = jaw / jaw_to_face
    face_height = face_width / width_to_height
    upper, middle, lower = thirds

    return FacialMeasurements(
        face_width=face_width,
        face_height=face_height,
        jaw_width=jaw,
        cheekbone_width=cheekbone,
        forehead_width=forehead,
        chin_width=chin,
        width_to_height_ratio=width_to_height,
        forehead_to_jaw_ratio=forehead_to_jaw,
        cheekbone_to_jaw_ratio=cheekbone_to_jaw,
        jaw_to_face_width_ratio=jaw_to_face,
        chin_to_jaw_ratio=chin_to_jaw,
        forehead_to_chin_ratio=forehead / chin,
        jaw_angularity=jaw_angularity,
        symmetry_score=1.0,
        golden_ratio_score=0.8,
        facial_thirds=FacialThirds(
            upper=upper,
            middle=middle,
            lower=lower,
            balanced=max(thirds) - min(thirds) <= 0.05 * face_height,
        ),
    )
