"""脸型对应的镜框风格建议"""

from models.data_models import StyleGuide

_GUIDES = {
    "Oval": StyleGuide(
        shape="Oval",
        description="You have an oval face shape, characterized by balanced proportions and a gently rounded jawline.",
        frames=["Rectangle", "Square", "Aviator", "Wayfarer"],
        colors=["Tortoise", "Brown", "Gold", "Black"],
        avoid=["Oversized frames", "Very small frames"],
        top_styles=["Wayfarer", "Rectangle", "Cat-Eye"],
    ),
    "Round": StyleGuide(
        shape="Round",
        description="You have a round face shape, characterized by soft curves and similar width and length dimensions.",
        frames=["Rectangle", "Square", "Wayfarer", "Angular frames"],
        colors=["Black", "Blue", "Tortoise", "Dark colors"],
        avoid=["Round frames", "Small frames"],
        top_styles=["Square", "Rectangle", "Wayfarer"],
    ),
    "Square": StyleGuide(
        shape="Square",
        description="You have a square face shape, characterized by a strong jawline and forehead "
                    "with similar width dimensions.",
        frames=["Round", "Oval", "Rimless", "Semi-rimless"],
        colors=["Burgundy", "Brown", "Gray", "Soft colors"],
        avoid=["Square frames", "Geometric shapes"],
        top_styles=["Round", "Oval", "Aviator"],
    ),
    "Heart": StyleGuide(
        shape="Heart",
        description="You have a heart-shaped face, characterized by a wider forehead that narrows "
                    "down to a pointed chin.",
        frames=["Oval", "Light rimmed", "Cat-eye", "Bottom-heavy frames"],
        colors=["Light brown", "Transparent", "Rose gold", "Light colors"],
        avoid=["Top-heavy frames", "Decorative temples"],
        top_styles=["Round", "Oval", "Cat-Eye"],
    ),
    "Diamond": StyleGuide(
        shape="Diamond",
        description="You have a diamond face shape, characterized by a narrow forehead and jawline "
                    "with wider cheekbones.",
        frames=["Cat-eye", "Oval", "Rimless", "Frames with detailing on top"],
        colors=["Purple", "Blue", "Black", "Bright colors"],
        avoid=["Narrow frames", "Angular frames"],
        top_styles=["Oval", "Wayfarer", "Cat-Eye"],
    ),
    "Oblong": StyleGuide(
        shape="Oblong",
        description="You have an oblong face shape, characterized by a face longer than it is wide "
                    "with a long, straight cheek line.",
        frames=["Round", "Square", "Aviator", "Oversized"],
        colors=["Dark brown", "Green", "Tortoise", "Bold colors"],
        avoid=["Small frames", "Narrow frames"],
        top_styles=["Round", "Square", "Aviator"],
    ),
    "Rectangle": StyleGuide(
        shape="Rectangle",
        description="You have a rectangular face shape, characterized by a longer face with a forehead, "
                    "cheekbones, and jawline of similar width.",
        frames=["Round", "Square with softer edges", "Oversized", "Decorative temples"],
        colors=["Dark brown", "Green", "Tortoise", "Bold colors"],
        avoid=["Small frames", "Rectangle frames"],
        top_styles=["Round", "Oval", "Aviator"],
    ),
    "Triangle": StyleGuide(
        shape="Triangle",
        description="You have a triangular face shape, characterized by a wider jawline that narrows "
                    "towards the forehead.",
        frames=["Cat-eye", "Browline", "Decorative temples", "Top-heavy frames"],
        colors=["Black", "Navy", "Crystal", "Dark colors"],
        avoid=["Bottom-heavy frames", "Low-sitting frames"],
        top_styles=["Aviator", "Cat-Eye", "Rectangle"],
    ),
}


def get_style_guide(face_shape: str) -> StyleGuide:
    """返回脸型的风格建议，未知脸型使用 Oval 的建议"""
    return _GUIDES.get(face_shape, _GUIDES["Oval"])
