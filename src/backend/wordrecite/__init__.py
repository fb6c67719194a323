"""
单词复习记录服务
"""
__version__ = "0.1.0"
