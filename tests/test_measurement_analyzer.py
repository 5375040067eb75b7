"""MeasurementAnalyzer 单元测试"""

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from detectors.geometry import DegenerateGeometryError
from detectors.measurement_analyzer import MeasurementAnalyzer
from landmark_factory import make_landmarks


@pytest.fixture
def analyzer():
    return MeasurementAnalyzer()


class TestMeasure:
    """测试 68 点完整测量"""

    def test_widths(self, analyzer):
        m = analyzer.measure(make_landmarks())
        assert m.jaw_width == pytest.approx(120.0)
        assert m.cheekbone_width == pytest.approx(124.0)
        assert m.chin_width == pytest.approx(60.0)
        assert m.forehead_width == pytest.approx(121.0)

    def test_face_width_is_max_of_spans(self, analyzer):
        m = analyzer.measure(make_landmarks())
        assert m.face_width == pytest.approx(140.0)

    def test_face_width_uses_forehead_when_widest(self, analyzer):
        m = analyzer.measure(make_landmarks(face_half=50.0, brow_half=60.0))
        assert m.face_width == pytest.approx(132.0)

    def test_face_height_from_brow_to_chin(self, analyzer):
        m = analyzer.measure(make_landmarks())
        assert m.face_height == pytest.approx(160.0)
        assert m.chin_height == pytest.approx(45.0)

    def test_ratios(self, analyzer):
        m = analyzer.measure(make_landmarks())
        assert m.width_to_height_ratio == pytest.approx(140.0 / 160.0)
        assert m.forehead_to_jaw_ratio == pytest.approx(121.0 / 120.0)
        assert m.cheekbone_to_jaw_ratio == pytest.approx(124.0 / 120.0)
        assert m.jaw_to_face_width_ratio == pytest.approx(120.0 / 140.0)
        assert m.chin_to_jaw_ratio == pytest.approx(0.5)
        assert m.forehead_to_chin_ratio == pytest.approx(121.0 / 60.0)

    def test_eye_measurements(self, analyzer):
        m = analyzer.measure(make_landmarks())
        assert m.eye_distance == pytest.approx(64.0)
        assert m.eye_width == pytest.approx(24.0)
        assert m.eye_spacing_ratio == pytest.approx(64.0 / 140.0)

    def test_jaw_angularity(self, analyzer):
        # 3→5 的位移为 (30, 40)
        m = analyzer.measure(make_landmarks())
        assert m.jaw_angularity == pytest.approx(math.degrees(math.atan2(40.0, 30.0)))

    def test_steeper_jaw_is_more_angular(self, analyzer):
        soft = analyzer.measure(make_landmarks(jaw_half=65.0, chin_half=20.0))
        sharp = analyzer.measure(make_landmarks(jaw_half=60.0, chin_half=55.0))
        assert sharp.jaw_angularity > soft.jaw_angularity

    def test_symmetric_face_scores_one(self, analyzer):
        m = analyzer.measure(make_landmarks())
        assert m.symmetry_score == pytest.approx(1.0)

    def test_golden_ratio_score(self, analyzer):
        m = analyzer.measure(make_landmarks())
        expected = 1.0 - abs(160.0 / 140.0 - 1.618) / 1.618
        assert m.golden_ratio_score == pytest.approx(expected)

    def test_facial_thirds_unbalanced(self, analyzer):
        thirds = analyzer.measure(make_landmarks()).facial_thirds
        assert (thirds.upper, thirds.middle, thirds.lower) == pytest.approx((60.0, 55.0, 45.0))
        assert thirds.balanced is False

    def test_facial_thirds_balanced(self, analyzer):
        thirds = analyzer.measure(make_landmarks(nose_y=153.0, lip_y=207.0)).facial_thirds
        assert thirds.balanced is True

    def test_facial_thirds_split_at_nose_tip_and_lower_lip(self):
        """三庭只随鼻尖和下唇中点移动，鼻梁顶、嘴角不参与分段"""
        points = make_landmarks()
        base = MeasurementAnalyzer.calculate_facial_thirds(points, 100.0, 160.0)

        moved = list(points)
        moved[27] = (moved[27][0], moved[27][1] + 15.0)
        moved[48] = (moved[48][0], moved[48][1] - 12.0)
        assert MeasurementAnalyzer.calculate_facial_thirds(moved, 100.0, 160.0) == base

        moved[30] = (moved[30][0], moved[30][1] + 5.0)
        shifted = MeasurementAnalyzer.calculate_facial_thirds(moved, 100.0, 160.0)
        assert shifted.upper == pytest.approx(base.upper + 5.0)
        assert shifted.middle == pytest.approx(base.middle - 5.0)
        assert shifted.lower == pytest.approx(base.lower)

    def test_fewer_than_68_points_raises(self, analyzer):
        with pytest.raises(ValueError):
            analyzer.measure(make_landmarks()[:60])

    def test_zero_jaw_width_raises(self, analyzer):
        with pytest.raises(DegenerateGeometryError):
            analyzer.measure(make_landmarks(jaw_half=0.0))

    def test_chin_above_brows_raises(self, analyzer):
        with pytest.raises(DegenerateGeometryError):
            analyzer.measure(make_landmarks(brow_y=300.0))

    @given(
        face_half=st.floats(min_value=60.0, max_value=90.0),
        jaw_half=st.floats(min_value=30.0, max_value=70.0),
        cheek_half=st.floats(min_value=40.0, max_value=75.0),
        chin_half=st.floats(min_value=10.0, max_value=40.0),
        brow_half=st.floats(min_value=35.0, max_value=60.0),
        chin_y=st.floats(min_value=230.0, max_value=320.0),
    )
    def test_scores_within_unit_interval(self, face_half, jaw_half, cheek_half, chin_half, brow_half, chin_y):
        m = MeasurementAnalyzer().measure(
            make_landmarks(
                face_half=face_half,
                jaw_half=jaw_half,
                cheek_half=cheek_half,
                chin_half=chin_half,
                brow_half=brow_half,
                chin_y=chin_y,
            )
        )
        assert 0.0 <= m.symmetry_score <= 1.0
        assert 0.0 <= m.golden_ratio_score <= 1.0
        assert 0.0 <= m.jaw_angularity <= 90.0
        assert m.face_width > 0 and m.face_height > 0


class TestSymmetry:
    def test_shifted_jaw_lowers_score(self):
        points = make_landmarks()
        points[0] = (points[0][0] - 30.0, points[0][1])
        assert MeasurementAnalyzer.calculate_symmetry(points) < 1.0

    def test_points_on_midline_count_as_symmetric(self):
        points = [(200.0, float(i)) for i in range(68)]
        assert MeasurementAnalyzer.calculate_symmetry(points) == pytest.approx(1.0)


class TestMeasureSimplified:
    """测试关键点不足时的降级测量"""

    def test_bounding_box_proportions(self, analyzer):
        points = [(0.0, 0.0), (80.0, 0.0), (40.0, 100.0), (0.0, 100.0)]
        m = analyzer.measure_simplified(points)
        assert m.face_width == pytest.approx(80.0)
        assert m.face_height == pytest.approx(100.0)
        assert m.width_to_height_ratio == pytest.approx(0.8)
        assert m.cheekbone_width == pytest.approx(80.0)
        assert m.jaw_width == pytest.approx(72.0)
        assert m.forehead_width == pytest.approx(75.0)
        assert m.chin_width == pytest.approx(45.0)

    def test_landmark_only_fields_are_none(self, analyzer):
        m = analyzer.measure_simplified([(0.0, 0.0), (80.0, 0.0), (40.0, 100.0)])
        assert m.eye_distance is None
        assert m.jaw_angularity is None
        assert m.symmetry_score is None
        assert m.facial_thirds is None
        assert m.golden_ratio_score is not None

    def test_too_few_points_raises(self, analyzer):
        with pytest.raises(DegenerateGeometryError):
            analyzer.measure_simplified([(0.0, 0.0), (10.0, 10.0)])

    def test_flat_box_raises(self, analyzer):
        with pytest.raises(DegenerateGeometryError):
            analyzer.measure_simplified([(0.0, 5.0), (10.0, 5.0), (20.0, 5.0)])
