import logging
import os
import sys

# 项目根目录加入 sys.path，测试可直接导入各顶层包和 main / web_app
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hypothesis import settings

# CI：更多样例；本地开发：较少样例
settings.register_profile("ci", max_examples=200)
settings.register_profile("dev", max_examples=100)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "dev"))

# 测试输出中保留 DEBUG 测量日志，失败时便于定位
logging.getLogger("detectors").setLevel(logging.DEBUG)
