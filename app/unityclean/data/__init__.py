"""Bundled data files for unityclean."""
