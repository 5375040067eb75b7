"""风格建议单元测试"""

import pytest

from evaluators.style_guide import get_style_guide
from models.data_models import FACE_SHAPES


@pytest.mark.parametrize("shape", FACE_SHAPES)
def test_every_shape_has_guide(shape):
    guide = get_style_guide(shape)
    assert guide.shape == shape
    assert guide.frames
    assert guide.avoid
    assert len(guide.top_styles) == 3


def test_unknown_shape_uses_oval():
    assert get_style_guide("Pear") == get_style_guide("Oval")


def test_round_face_avoids_round_frames():
    assert "Round frames" in get_style_guide("Round").avoid
