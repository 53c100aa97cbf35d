"""unityclean - guided cache cleaning for Unity projects."""

__version__ = "1.3.0"
