"""
Echo Macro 共享模块。

包含插件各层共用的常量和数据模型。
"""
