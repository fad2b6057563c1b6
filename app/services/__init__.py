"""
服务包初始化文件
"""
