from .traffic_pipeline import TrafficPipeline

__all__ = ["TrafficPipeline"]
