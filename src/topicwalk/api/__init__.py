from topicwalk.api.read_topic import read_topic

__all__ = ["read_topic"]
