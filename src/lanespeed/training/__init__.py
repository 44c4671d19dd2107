from .dataset import TrainingSet, build_training_set, sample_frame_indices

__all__ = ["TrainingSet", "build_training_set", "sample_frame_indices"]
