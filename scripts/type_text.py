#!/usr/bin/env python3
"""
手动测试文本键入的简单脚本。

检测运行环境后倒计时，然后通过 ydotool 键入一次文本，并输出诊断信息。
"""

import sys
import logging
import time
import argparse

# 配置日志
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger("type_text")


def main():
    parser = argparse.ArgumentParser(description='测试 ydotool 文本键入')
    parser.add_argument('--text', default='Hello World', help='要键入的文本')
    parser.add_argument('--delay', type=float, default=3.0, help='执行前的延迟秒数')
    parser.add_argument('--probe', action='store_true', help='只检查 ydotool 是否可用')
    args = parser.parse_args()

    from echo_macro.injection import SandboxDetector, YdotoolInjector

    injector = YdotoolInjector(SandboxDetector.detect())
    print(f"注入器状态: {injector.get_status()}")

    if args.probe:
        return 0 if injector.check_available() else 1

    print(f"将在 {args.delay} 秒后键入 {len(args.text)} 个字符")
    print("请确保光标位于目标输入区域...")

    for i in range(int(args.delay), 0, -1):
        print(f"{i}...", end='', flush=True)
        time.sleep(1)
    print("开始键入!")

    if injector.inject_text(args.text):
        print("\n文本键入成功!")
        return 0

    print("\n文本键入失败，请查看上面的诊断信息")
    return 1


if __name__ == "__main__":
    sys.exit(main())
