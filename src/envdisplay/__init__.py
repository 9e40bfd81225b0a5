"""envdisplay：室内外环境数据的小尺寸点阵屏显示服务。"""
