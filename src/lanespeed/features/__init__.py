from .extractor import cell_features, feature_names, frame_features, row_features

__all__ = ["cell_features", "feature_names", "frame_features", "row_features"]
